from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from roomsync import auth
from roomsync.app_factory import create_service_app
from roomsync.database import get_db
from roomsync.dependencies import get_current_principal, get_gate, get_role_store
from roomsync.errors import AuthenticationError, ConflictError
from roomsync.gate import AuthorizationGate
from roomsync.models import User
from roomsync.principal import Principal, normalize_label
from roomsync.rate_limit import limiter
from roomsync.roles import RoleStore
from roomsync.schemas import PrincipalRead, Token, UserCreate, UserRead

router = APIRouter(tags=["identity"])


@router.post("/users/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def register_user(request: Request, user_in: UserCreate, db: Session = Depends(get_db)) -> User:
    email = normalize_label(user_in.email)
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("A user with this email already exists", email=email)

    user = User(email=email, name=user_in.name, hashed_password=auth.get_password_hash(user_in.password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("A user with this email already exists", email=email) from exc
    db.refresh(user)
    return user


@router.post("/users/login", response_model=Token)
@limiter.limit("10/minute")
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    roles: RoleStore = Depends(get_role_store),
) -> Token:
    user = auth.authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise AuthenticationError("Incorrect email or password")

    principal = Principal(user_id=user.id, label=user.email)
    roles.reconcile(principal)
    return Token(access_token=auth.create_principal_token(principal))


@router.get("/users/me", response_model=PrincipalRead)
def read_me(
    principal: Principal = Depends(get_current_principal),
    gate: AuthorizationGate = Depends(get_gate),
) -> PrincipalRead:
    return PrincipalRead(user_id=principal.user_id, label=principal.label, role=gate.role_of(principal))


app = create_service_app("Identity Service", "identity", router)
