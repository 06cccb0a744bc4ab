from fastapi import Request, status
from fastapi.responses import ORJSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class AppError(Exception):
    """Base application error carrying the HTTP status it maps to."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ConfigurationError(AppError):
    """Required configuration is absent; raised before any request is routed."""

    def __init__(self, message: str = "Configuration error"):
        super().__init__(message)


class PaymentGatewayError(AppError):
    """A payment provider call failed; status_code is the provider's HTTP status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, status_code=status_code or status.HTTP_500_INTERNAL_SERVER_ERROR)


async def not_found_handler(request: Request, exc: StarletteHTTPException):
    # Unknown paths and known paths hit with the wrong method both read as 404.
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return PlainTextResponse("Not Found", status_code=status.HTTP_404_NOT_FOUND)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    from app.core.logging import get_logger
    get_logger(__name__).exception("unhandled_exception", exc_info=exc)
    body = {
        "error": {
            "message": "Internal server error",
            "code": "INTERNAL_ERROR",
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body,
    )
