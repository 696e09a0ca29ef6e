import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class BillingError(Exception):
    """Base class for errors the API maps to a response."""


class NotFound(BillingError):
    def __init__(self, entity: str, entity_id: int | None = None) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class ValidationFailed(BillingError):
    def __init__(self, fields: dict[str, str]) -> None:
        self.fields = fields
        super().__init__("Validation failed")


class ConcurrencyConflict(BillingError):
    """The record disappeared between load and save."""

    def __init__(self, entity: str, entity_id: int) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity} {entity_id} was removed by someone else before your change was saved"
        )


class StoreUnavailable(BillingError):
    pass


def register_exception_handlers(app: FastAPI) -> None:
    log = logging.getLogger("uvicorn.error")

    @app.exception_handler(NotFound)
    async def _not_found(request: Request, exc: NotFound):
        log.info("%s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(ValidationFailed)
    async def _validation_failed(request: Request, exc: ValidationFailed):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc), "fields": exc.fields},
        )

    @app.exception_handler(ConcurrencyConflict)
    async def _conflict(request: Request, exc: ConcurrencyConflict):
        log.warning("%s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    @app.exception_handler(StoreUnavailable)
    async def _store_unavailable(request: Request, exc: StoreUnavailable):
        log.warning("%s %s: store unavailable: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Data store unavailable"},
        )
