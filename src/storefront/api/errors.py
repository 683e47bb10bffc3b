"""Maps the storefront error taxonomy and protean's domain exceptions onto HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from storefront.shared.errors import StorefrontError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _reject(request: Request, status_code: int, kind: str, message, **extra) -> JSONResponse:
    logger.info(
        "request_rejected",
        path=request.url.path,
        error=kind,
        status_code=status_code,
        message=message,
    )
    return JSONResponse(status_code=status_code, content={"error": kind, "message": message, **extra})


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        return _reject(request, exc.status_code, exc.kind, exc.message)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        # Field name -> list of messages, as raised by aggregates and commands
        messages = exc.messages
        summary = "; ".join(
            str(msg)
            for field_messages in messages.values()
            for msg in (field_messages if isinstance(field_messages, list) else [field_messages])
        )
        return _reject(request, 400, "ValidationError", summary, messages=messages)

    @app.exception_handler(ObjectNotFoundError)
    async def object_not_found_handler(request: Request, exc: ObjectNotFoundError):
        return _reject(request, 404, "NotFound", str(exc))
