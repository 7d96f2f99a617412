from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from app.core.events import PERMISSION_ERROR
from app.core.exceptions import ZimmahError, PermissionDeniedError
from app.core.toasts import toast_scope
from app.schemas.response import ErrorResponse
from app.core.config import settings

logger = logging.getLogger(__name__)


def jsonable_errors(errors):
    """
    Pydantic error list with exceptions in `ctx` turned into their messages.

    Custom validators put the raised ValueError itself in `ctx["error"]`.
    """
    cleaned = []
    for error in errors:
        ctx = error.get("ctx")
        if ctx:
            error = {
                **error,
                "ctx": {key: str(value) if isinstance(value, Exception) else value for key, value in ctx.items()},
            }
        cleaned.append(error)
    return cleaned


def bridge_permission_error(request: Request, exc: PermissionDeniedError) -> JSONResponse:
    """
    Publishes a permission error on the application bus and turns the
    listener's decision into a 403 response.
    """
    emitter = getattr(request.app.state, "emitter", None)

    with toast_scope() as sink:
        try:
            if emitter is not None:
                emitter.emit(PERMISSION_ERROR, exc)
        except PermissionDeniedError as escalated:
            logger.error(
                f"Permission error escalated: {escalated.operation} {escalated.path}",
                extra={"path": escalated.path, "operation": escalated.operation},
                exc_info=escalated
            )
            return JSONResponse(
                status_code=403,
                content=jsonable_encoder(ErrorResponse(
                    error=escalated.message,
                    code=escalated.code,
                    details=escalated.context
                ))
            )

    toasts = sink.drain()
    message = toasts[0].description if toasts else "Permission denied"
    return JSONResponse(
        status_code=403,
        content=jsonable_encoder(ErrorResponse(
            error=message,
            code=exc.code,
            details={"toasts": toasts}
        ))
    )


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    """
    @app.exception_handler(PermissionDeniedError)
    async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
        return bridge_permission_error(request, exc)

    @app.exception_handler(ZimmahError)
    async def zimmah_exception_handler(request: Request, exc: ZimmahError):
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(ErrorResponse(
                error=exc.message,
                code=exc.code,
                details=exc.details
            ))
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handles standard HTTP exceptions (404, etc.)
        """
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=str(exc.detail),
                code="HTTP_ERROR",
                details=None
            ).model_dump()
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Handles Pydantic validation errors.
        """
        return JSONResponse(
            status_code=422,
            content=jsonable_encoder(ErrorResponse(
                error="Input validation failed",
                code="VALIDATION_ERROR",
                details=jsonable_errors(exc.errors())
            ))
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all for unhandled exceptions.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "method": request.method,
                "url": str(request.url),
                "client": request.client.host if request.client else "unknown"
            },
            exc_info=True
        )

        message = "An internal error occurred. Please try again later." if settings.is_production else str(exc)

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error=message,
                code="INTERNAL_ERROR",
                details=None
            ).model_dump()
        )
