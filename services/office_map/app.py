from typing import List, Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile, status

from roomsync.app_factory import create_service_app
from roomsync.artifacts import ArtifactVersionStore
from roomsync.blobs import LocalBlobStore
from roomsync.config import get_settings
from roomsync.dependencies import get_current_principal, get_gate, get_office_map_store
from roomsync.errors import ValidationError
from roomsync.gate import AuthorizationGate
from roomsync.models import Artifact, RoleEnum
from roomsync.principal import Principal
from roomsync.rate_limit import limiter
from roomsync.schemas import ArtifactRead, IdResponse

settings = get_settings()
router = APIRouter(prefix="/artifact", tags=["office-map"])


def get_blob_store() -> LocalBlobStore:
    return LocalBlobStore(get_settings().upload_dir)


def read_image_upload(upload: UploadFile, max_bytes: int) -> bytes:
    """Return the upload's bytes after checking type and size."""
    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        raise ValidationError("Only image uploads are accepted", content_type=content_type or None)
    data = upload.file.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise ValidationError(f"File exceeds the {max_bytes} byte limit", max_bytes=max_bytes)
    if not data:
        raise ValidationError("File is empty")
    return data


@router.get("", response_model=Optional[ArtifactRead])
@limiter.limit("60/minute")
def current_office_map(
    request: Request,
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    store: ArtifactVersionStore = Depends(get_office_map_store),
) -> Optional[Artifact]:
    gate.require(principal, RoleEnum.USER)
    return store.current_active()


@router.get("/history", response_model=List[ArtifactRead])
@limiter.limit("20/minute")
def office_map_history(
    request: Request,
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    store: ArtifactVersionStore = Depends(get_office_map_store),
) -> List[Artifact]:
    gate.require(principal, RoleEnum.ADMIN)
    return store.history()


@router.post("", response_model=IdResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def publish_office_map(
    request: Request,
    file: UploadFile = File(...),
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
    store: ArtifactVersionStore = Depends(get_office_map_store),
    blobs: LocalBlobStore = Depends(get_blob_store),
) -> IdResponse:
    gate.require(principal, RoleEnum.ADMIN)
    data = read_image_upload(file, settings.max_upload_bytes)
    original_name = file.filename or "office-map"
    blob_ref = blobs.put(data, original_name)
    try:
        artifact = store.publish(blob_ref, original_name, content_type=file.content_type, size_bytes=len(data))
    except Exception:
        blobs.delete(blob_ref)
        raise
    return IdResponse(id=artifact.id)


app = create_service_app("Office Map Service", "office_map", router)
