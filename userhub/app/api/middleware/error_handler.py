# userhub/app/api/middleware/error_handler.py
"""
Turns every failure into the same JSON error envelope:

    {"success": false, "statusCode": ..., "errorType": ..., "message": ..., "details": {...}}

Account errors (raised by services or dependencies) and request validation
errors go through exception handlers; anything else reaches the middleware
and becomes a generic 500.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from userhub.app.core.exceptions import AccountError, Internal, InvalidInput

logger = logging.getLogger(__name__)


def error_response(error: AccountError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def error_handler_middleware(request: Request, call_next):
    """
    Catch unexpected exceptions raised by route handlers.

    They are logged with their traceback; the client only sees a generic
    500 (plus the exception text outside production).
    """
    try:
        return await call_next(request)
    except Exception as e:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        settings = getattr(request.app.state, "settings", None)
        details = {} if settings is None or settings.is_production else {"error": str(e)}
        return error_response(Internal("An unexpected error occurred", details=details))


async def account_error_handler(request: Request, exc: AccountError):
    return error_response(exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
    return error_response(InvalidInput("Invalid request", details={"fields": fields}))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AccountError, account_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.middleware("http")(error_handler_middleware)
