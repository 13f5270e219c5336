"""Error types and the FastAPI handlers that turn them into `{"error": ...}` responses."""
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class FeedbackAPIError(Exception):
    """Base class for errors raised by the feedback service."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FeedbackValidationError(FeedbackAPIError):
    """Input violates the feedback schema (missing, blank or too long)."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class StorageError(FeedbackAPIError):
    """The store is unreachable or rejected the operation."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ConfigurationError(FeedbackAPIError):
    """Required configuration is missing. Raised before the app starts serving."""


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "N/A")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def feedback_exception_handler(request: Request, exc: FeedbackAPIError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
            extra={"request_id": _request_id(request)},
        )
    else:
        logger.warning(
            f"Rejected {request.method} {request.url.path}: {exc.message}",
            extra={"request_id": _request_id(request)},
        )
    return error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = error_response(exc.status_code, str(exc.detail))
    if getattr(exc, "headers", None):
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors, reported like schema violations."""
    messages = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        field = ".".join(loc)
        messages.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    message = "; ".join(messages) or "Invalid request"
    logger.warning(
        f"Invalid request body on {request.method} {request.url.path}: {message}",
        extra={"request_id": _request_id(request)},
    )
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        extra={"request_id": _request_id(request)},
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
