from fastapi import APIRouter, FastAPI

from relay.landing.route import router as landing_router
from relay.proxy.route import RELAY_PATH, RelayEndpoint

router = APIRouter()
router.include_router(landing_router)


def register_routes(app: FastAPI) -> None:
    """Attach the landing page and, last of all, the relay catch-all."""
    app.include_router(router)
    # No method list: every method, standard or not, is relayed
    app.add_route(RELAY_PATH, RelayEndpoint(), name="relay", include_in_schema=False)
