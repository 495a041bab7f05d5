from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from souk_inventory.app.core.errors import (
    AlreadyReceived,
    Conflict,
    InvalidInput,
    InvalidState,
    InventoryError,
    NotFound,
    StorageError,
)

STATUS_BY_ERROR: dict[type[InventoryError], int] = {
    NotFound: 404,
    InvalidInput: 400,
    InvalidState: 400,
    Conflict: 409,
    AlreadyReceived: 400,
    StorageError: 503,
}


def status_for(exc: InventoryError) -> int:
    for klass in type(exc).__mro__:
        if klass in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[klass]
    return 500


async def inventory_error_handler(request: Request, exc: InventoryError) -> JSONResponse:
    return JSONResponse(status_code=status_for(exc), content={"detail": exc.message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InventoryError, inventory_error_handler)
