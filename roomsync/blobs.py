"""Storage for uploaded bytes; the core only keeps the resulting BlobRef."""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from time import time
from uuid import uuid4

_SAFE_SUFFIX = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


@dataclass(frozen=True)
class BlobRef:
    filename: str
    url: str


class LocalBlobStore:
    """Write blobs under a directory and address them by URL path."""

    def __init__(self, root: str | Path, url_prefix: str = "/uploads") -> None:
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def put(self, data: bytes, original_name: str, prefix: str = "office-map") -> BlobRef:
        suffix = Path(original_name).suffix.lower()
        if not _SAFE_SUFFIX.match(suffix):
            suffix = ""
        filename = f"{prefix}-{int(time() * 1000)}-{uuid4().hex[:8]}{suffix}"
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / filename).write_bytes(data)
        return BlobRef(filename=filename, url=f"{self.url_prefix}/{filename}")

    def delete(self, blob_ref: BlobRef) -> None:
        (self.root / blob_ref.filename).unlink(missing_ok=True)
