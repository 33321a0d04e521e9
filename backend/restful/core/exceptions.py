"""
HTTP error types and the terminal error handler.
Every error raised while serving a request ends up here and is
rendered as ``{"error": ..., "stack": ...}``.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import traceback
from typing import Any, Dict, Optional

from restful.core.config import settings


logger = logging.getLogger(__name__)


class HttpError(Exception):
    """Base error carrying the HTTP status it should be answered with."""
    
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = ""
    
    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, details: Any = None):
        self.message = self.default_message if message is None else message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class BadRequestError(HttpError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad Request"


class UnauthorizedError(HttpError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(HttpError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(HttpError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not Found"


class MethodNotAllowed(HttpError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    default_message = "Method Not Allowed"


def _serialize_validation_errors(errors: list) -> list:
    """Convert validation errors to JSON-serializable format."""
    serialized = []
    for error in errors:
        serialized_error = {}
        for key, value in error.items():
            if key == "ctx" and isinstance(value, dict):
                serialized_error[key] = {
                    ctx_key: str(ctx_value) if isinstance(ctx_value, Exception) else ctx_value
                    for ctx_key, ctx_value in value.items()
                }
            elif isinstance(value, Exception):
                serialized_error[key] = str(value)
            else:
                serialized_error[key] = value
        serialized.append(serialized_error)
    return serialized


class ErrorHandler:
    """
    Parses, logs and responds to errors.
    
    Registered as the last handler of the application by
    ``restful.routes.urls``. Stack traces are only included in the
    response body when the application is not running in production.
    """
    
    def __init__(self, app: FastAPI, environment: Optional[str] = None):
        self.app = app
        self.environment = environment
    
    @property
    def is_production(self) -> bool:
        environment = (
            self.environment
            or getattr(self.app.state, "environment", None)
            or settings.ENVIRONMENT
        )
        return environment.lower() == "production"
    
    async def handle(self, request: Request, exc: Exception) -> JSONResponse:
        status_code = self.status_for(exc)
        message = self.message_for(exc)
        
        if status_code >= 500:
            logger.error(
                f"Unhandled exception: {type(exc).__name__}: {message}",
                exc_info=(type(exc), exc, exc.__traceback__),
                extra={"status_code": status_code, "path": request.url.path},
            )
        else:
            logger.warning(
                f"HTTP error: {message}",
                extra={"status_code": status_code, "path": request.url.path},
            )
        
        response: Dict[str, Any] = {}
        
        # Only append `error` if a message exists
        if message:
            response["error"] = message
        
        details = self.details_for(exc)
        if details is not None:
            response["details"] = details
        
        if not self.is_production:
            response["stack"] = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
        
        headers = getattr(exc, "headers", None) if isinstance(exc, StarletteHTTPException) else None
        return JSONResponse(status_code=status_code, content=response, headers=headers)
    
    @staticmethod
    def status_for(exc: Exception) -> int:
        if isinstance(exc, RequestValidationError):
            return status.HTTP_422_UNPROCESSABLE_ENTITY
        
        code = getattr(exc, "status_code", None) or getattr(exc, "status", None)
        if isinstance(code, int) and 400 <= code < 600:
            return code
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    
    @staticmethod
    def message_for(exc: Exception) -> str:
        if isinstance(exc, HttpError):
            return exc.message
        if isinstance(exc, RequestValidationError):
            return "Validation error"
        if isinstance(exc, StarletteHTTPException):
            return str(exc.detail) if exc.detail is not None else ""
        return str(exc)
    
    @staticmethod
    def details_for(exc: Exception) -> Any:
        if isinstance(exc, HttpError):
            return exc.details
        if isinstance(exc, RequestValidationError):
            return _serialize_validation_errors(exc.errors())
        return None


def setup_exception_handlers(app: FastAPI, handler: Optional[ErrorHandler] = None) -> ErrorHandler:
    """Register the error handler for every error type the app can raise."""
    handler = handler or ErrorHandler(app)
    app.add_exception_handler(HttpError, handler.handle)
    app.add_exception_handler(StarletteHTTPException, handler.handle)
    app.add_exception_handler(RequestValidationError, handler.handle)
    app.add_exception_handler(Exception, handler.handle)
    return handler
