"""Exception handlers for the content API."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cms.exceptions import AdapterError, CMSError, PayloadValidationError

logger = logging.getLogger(__name__)

# Request parts FastAPI prefixes onto error locations
_LOCATIONS = {"body", "query", "path", "header"}


def _request_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        loc = list(error.get("loc", ()))
        if loc and loc[0] in _LOCATIONS:
            loc = loc[1:]
        errors.append(
            {
                "path": ".".join(str(part) for part in loc),
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "value_error"),
            }
        )
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register the content engine's exception handlers on an application.

    Handles:
    - CMSError: reported with its kind and mapped status code
    - RequestValidationError: malformed bodies and query parameters (400)
    - AdapterError: storage failures that escaped the engine (500)

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(CMSError)
    async def cms_error_handler(request: Request, exc: CMSError) -> JSONResponse:
        """Convert engine errors to ``{"error": kind, "message": ...}``."""
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed requests the same way as invalid payloads."""
        error = PayloadValidationError("Validation failed", _request_errors(exc))
        logger.debug("Rejected %s %s: %s", request.method, request.url.path, error.errors)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(AdapterError)
    async def adapter_error_handler(request: Request, exc: AdapterError) -> JSONResponse:
        """Convert unexpected storage failures to 500 Internal."""
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal", "message": "Storage operation failed"},
        )
