"""
Centralized exception handling module.

This module provides consistent error handling across the application with:
- Structured error responses
- Detailed logging
- HTTP status code mapping
- Error documentation for OpenAPI
"""

from typing import Any, Dict, Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import traceback

from vtype.core.config import settings
from vtype.core.exceptions import DatabaseError, VTypeException, ValidationError
from vtype.core.logging import logger

def create_error_response(
    status_code: int,
    message: str,
    error_type: str,
    details: Optional[Dict[str, Any]] = None,
    code: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create a standardized error response dictionary.

    Args:
        status_code: HTTP status code
        message: Error message
        error_type: Type of error
        details: Additional error details
        code: Machine-readable reason code

    Returns:
        Structured error response dictionary
    """
    response = {
        "error": {
            "status_code": status_code,
            "message": message,
            "type": error_type
        }
    }
    if code:
        response["error"]["code"] = code
    if details:
        response["error"]["details"] = details
    return response

async def vtype_exception_handler(
    request: Request,
    exc: VTypeException
) -> JSONResponse:
    """Handle custom VType exceptions with structured logging."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "VType application error",
        extra={
            "error_type": exc.__class__.__name__,
            "error": str(exc.detail),
            "code": exc.code.value if exc.code else None,
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code
        }
    )
    details = None
    if isinstance(exc, ValidationError) and exc.errors():
        details = {"errors": exc.errors()}
    return JSONResponse(
        status_code=exc.status_code,
        headers=exc.headers,
        content=create_error_response(
            status_code=exc.status_code,
            message=str(exc.detail),
            error_type=exc.__class__.__name__,
            details=details,
            code=exc.code.value if exc.code else None
        )
    )

async def sqlalchemy_error_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Handle database-related errors with proper logging."""
    error_details = {
        "traceback": traceback.format_exc(),
        "statement": str(getattr(exc, 'statement', 'No statement available')),
    }

    logger.error(
        "Database error",
        extra={
            "error_type": exc.__class__.__name__,
            "error": str(exc),
            "path": request.url.path,
            "method": request.method,
            **error_details
        }
    )

    error = DatabaseError("Database error occurred")
    return JSONResponse(
        status_code=error.status_code,
        content=create_error_response(
            status_code=error.status_code,
            message=error.detail,
            error_type=error.__class__.__name__,
            details=error_details if settings.DEBUG else None
        )
    )

async def validation_error_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle request payload validation errors."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    logger.warning(
        "Validation error",
        extra={
            "error_type": "ValidationError",
            "path": request.url.path,
            "method": request.method,
            "validation_errors": errors
        }
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=create_error_response(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            message="Request validation failed",
            error_type="ValidationError",
            details={"errors": errors}
        )
    )

async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle any unhandled exceptions."""
    logger.error(
        "Unhandled exception",
        extra={
            "error_type": exc.__class__.__name__,
            "error": str(exc),
            "path": request.url.path,
            "method": request.method,
            "traceback": traceback.format_exc()
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="An unexpected error occurred",
            error_type="InternalServerError",
            details={"error": str(exc)} if settings.DEBUG else None
        )
    )

def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler in this module to ``app``."""
    app.add_exception_handler(VTypeException, vtype_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

def get_error_responses(endpoint_name: str) -> Dict[int, Dict[str, Any]]:
    """
    Get OpenAPI documentation for possible error responses.

    Args:
        endpoint_name: Name of the endpoint to get error responses for

    Returns:
        Dictionary mapping status codes to response schemas
    """
    common_responses = {
        status.HTTP_401_UNAUTHORIZED: {
            "description": "Authentication failed",
            "content": {
                "application/json": {
                    "example": create_error_response(
                        status_code=status.HTTP_401_UNAUTHORIZED,
                        message="Token expired",
                        error_type="TokenExpiredError",
                        code="TOKEN_EXPIRED"
                    )
                }
            }
        },
        status.HTTP_500_INTERNAL_SERVER_ERROR: {
            "description": "Internal server error",
            "content": {
                "application/json": {
                    "example": create_error_response(
                        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                        message="An unexpected error occurred",
                        error_type="InternalServerError"
                    )
                }
            }
        }
    }

    if endpoint_name in ("refresh", "logout", "logout_all"):
        common_responses[status.HTTP_503_SERVICE_UNAVAILABLE] = {
            "description": "Token store unavailable",
            "content": {
                "application/json": {
                    "example": create_error_response(
                        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                        message="Token store unavailable",
                        error_type="StoreUnavailable",
                        code="STORE_UNAVAILABLE"
                    )
                }
            }
        }
    elif endpoint_name.startswith("admin"):
        common_responses[status.HTTP_403_FORBIDDEN] = {
            "description": "Caller lacks the admin role",
            "content": {
                "application/json": {
                    "example": create_error_response(
                        status_code=status.HTTP_403_FORBIDDEN,
                        message="Admin role required",
                        error_type="AuthorizationError"
                    )
                }
            }
        }

    return common_responses
