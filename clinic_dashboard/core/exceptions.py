"""Error handling and custom exceptions for the dashboard API."""

import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from clinic_dashboard.core.config import settings
from clinic_dashboard.core.logging import get_logger

logger = get_logger(__name__)


class ErrorCode(str, Enum):
    """Standardized error codes for the API."""

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Resource Errors
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # System Errors
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class ErrorResponse(BaseModel):
    """Error body returned for every handled exception."""
    detail: str
    error_code: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)


class ValidationErrorResponse(BaseModel):
    """Body returned for request validation failures."""
    detail: str = "Validation error"
    error_code: str = ErrorCode.VALIDATION_ERROR.value
    errors: List[Dict[str, Any]]
    request_id: Optional[str] = None


class APIException(Exception):
    """Base API exception with enhanced error information."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        context: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.context = context or {}
        self.request_id = request_id
        self.timestamp = datetime.now(timezone.utc)

        super().__init__(message)


class ConfigurationException(APIException):
    """Raised when clinic configuration cannot be turned into engine settings."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None
    ):
        super().__init__(
            message=message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            context=context,
            request_id=request_id
        )


def get_request_id(request: Request) -> str:
    """Get request ID from request state or generate new one."""
    if hasattr(request.state, 'request_id'):
        return request.state.request_id
    return str(uuid.uuid4())


def create_error_response(
    exception: APIException,
    request: Optional[Request] = None,
    include_traceback: bool = False
) -> JSONResponse:
    """Create standardized error response."""
    request_id = get_request_id(request) if request else None

    error_response = ErrorResponse(
        detail=exception.message,
        error_code=exception.error_code.value,
        timestamp=exception.timestamp,
        request_id=request_id,
        context=dict(exception.context)
    )

    # Add traceback in development
    if include_traceback:
        error_response.context["traceback"] = "".join(traceback.format_exception(exception))

    logger.error(
        "API error",
        error_code=exception.error_code.value,
        message=exception.message,
        status_code=exception.status_code,
        request_id=request_id,
    )

    return JSONResponse(
        status_code=exception.status_code,
        content=error_response.model_dump(mode="json")
    )


def create_validation_error_response(
    errors: List[Dict[str, Any]],
    request: Optional[Request] = None
) -> JSONResponse:
    """Create validation error response."""
    request_id = get_request_id(request) if request else None

    error_response = ValidationErrorResponse(
        errors=errors,
        request_id=request_id
    )

    logger.warning("Validation errors", errors=errors, request_id=request_id)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response.model_dump(mode="json")
    )


def create_http_exception_response(
    exception: HTTPException,
    request: Optional[Request] = None
) -> JSONResponse:
    """Create response for HTTPException."""
    request_id = get_request_id(request) if request else None

    error_code = ErrorCode.INTERNAL_SERVER_ERROR
    if exception.status_code == 404:
        error_code = ErrorCode.RESOURCE_NOT_FOUND
    elif exception.status_code == 422:
        error_code = ErrorCode.VALIDATION_ERROR

    error_response = ErrorResponse(
        detail=str(exception.detail),
        error_code=error_code.value,
        request_id=request_id
    )

    logger.error(
        "HTTP exception",
        status_code=exception.status_code,
        detail=str(exception.detail),
        request_id=request_id,
    )

    return JSONResponse(
        status_code=exception.status_code,
        content=error_response.model_dump(mode="json")
    )


def create_unhandled_exception_response(
    exception: Exception,
    request: Optional[Request] = None
) -> JSONResponse:
    """Create response for unhandled exceptions."""
    request_id = get_request_id(request) if request else None

    error_response = ErrorResponse(
        detail="An unexpected error occurred",
        error_code=ErrorCode.INTERNAL_SERVER_ERROR.value,
        request_id=request_id,
        context={"exception_type": type(exception).__name__}
    )

    logger.error(
        "Unhandled exception",
        exception=str(exception),
        exception_type=type(exception).__name__,
        request_id=request_id,
        traceback=traceback.format_exc(),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(mode="json")
    )


def _format_validation_errors(raw_errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    errors = []
    for error in raw_errors:
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "code": error["type"].upper(),
        })
    return errors


# Exception handlers
async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle APIException."""
    return create_error_response(exc, request, include_traceback=settings.debug)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle FastAPI validation errors."""
    return create_validation_error_response(_format_validation_errors(exc.errors()), request)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPException."""
    return create_http_exception_response(exc, request)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle general exceptions."""
    return create_unhandled_exception_response(exc, request)
