"""Password hashing, JWT handling, and helper utilities."""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import get_settings
from .errors import AuthenticationError
from .models import User
from .principal import Principal, normalize_label

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
settings = get_settings()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_principal_token(principal: Principal, expires_delta: Optional[timedelta] = None) -> str:
    return create_access_token({"sub": principal.label, "uid": principal.user_id}, expires_delta)


def decode_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthenticationError("Invalid token") from exc


def principal_from_token(token: str) -> Principal:
    payload = decode_token(token)
    label = payload.get("sub")
    user_id = payload.get("uid")
    if not label or user_id is None:
        raise AuthenticationError("Token does not identify a principal")
    try:
        return Principal(user_id=int(user_id), label=normalize_label(str(label)))
    except (TypeError, ValueError) as exc:
        raise AuthenticationError("Token does not identify a principal") from exc


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user: Optional[User] = (
        db.query(User).filter(User.email == normalize_label(email), User.is_active.is_(True)).first()
    )
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user
