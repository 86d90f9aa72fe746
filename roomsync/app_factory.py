"""Builds the FastAPI app every service runs behind."""
import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import Base, SessionLocal, engine
from .errors import install_error_handlers
from .logging_middleware import add_audit_middleware, configure_logging
from .rate_limit import apply_rate_limiter
from .roles import RoleStore

logger = logging.getLogger(__name__)
settings = get_settings()


def prepare_store() -> None:
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    if settings.bootstrap_admin_label:
        with SessionLocal() as db:
            assignment = RoleStore(db).ensure_bootstrap_admin(settings.bootstrap_admin_label)
            logger.info("Bootstrap admin is %s (%s)", assignment.principal_label, assignment.role.value)


@asynccontextmanager
async def lifespan(_: FastAPI):
    prepare_store()
    yield


def create_service_app(title: str, service_name: str, *routers: APIRouter) -> FastAPI:
    configure_logging()
    fastapi_app = FastAPI(title=title, version="0.3.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    add_audit_middleware(fastapi_app, service_name)
    install_error_handlers(fastapi_app)

    @fastapi_app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok", "service": service_name}

    for router in routers:
        fastapi_app.include_router(router)
    return fastapi_app
