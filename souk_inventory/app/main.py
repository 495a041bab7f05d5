from fastapi import FastAPI

from souk_inventory.app.api.errors import register_error_handlers
from souk_inventory.app.api.v1.router import router as v1_router
from souk_inventory.app.core.config import get_settings
from souk_inventory.app.core.logging import configure_logging


def create_app() -> FastAPI:
    configure_logging(get_settings().log_level)

    app = FastAPI(title="SOUK INVENTORY", version="0.1.0")
    register_error_handlers(app)
    app.include_router(v1_router, prefix="/v1")
    return app


app = create_app()
