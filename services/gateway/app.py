import uvicorn
from prometheus_fastapi_instrumentator import Instrumentator

from roomsync.app_factory import create_service_app
from roomsync.config import get_settings
from services.identity.app import router as identity_router
from services.office_map.app import router as office_map_router
from services.reservations.app import router as reservations_router
from services.resources.app import router as resources_router
from services.roles.app import router as roles_router

app = create_service_app(
    "RoomSync API",
    "gateway",
    identity_router,
    resources_router,
    reservations_router,
    roles_router,
    office_map_router,
)

# Add Prometheus metrics instrumentation
Instrumentator().instrument(app).expose(app)


def run() -> None:
    settings = get_settings()
    uvicorn.run("services.gateway.app:app", host="0.0.0.0", port=settings.gateway_port)
