"""
Custom exception classes for the VType application.

This module defines a hierarchy of application-specific exceptions that:
- Provide consistent error handling
- Map to appropriate HTTP status codes
- Carry a machine-readable reason code where clients need to branch on it
- Support additional context and headers
"""

from enum import Enum
from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    """Reason codes returned to clients alongside failures they can branch on."""

    TOKEN_MISSING = "TOKEN_MISSING"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_REVOKED = "TOKEN_REVOKED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_TOKEN_TYPE = "INVALID_TOKEN_TYPE"
    INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_DEACTIVATED = "USER_DEACTIVATED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    RECEIVER_NOT_FOUND = "RECEIVER_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class VTypeException(HTTPException):
    """
    Base exception class for VType application.

    All application-specific exceptions should inherit from this class
    to ensure consistent error handling and response formatting.
    """
    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
        code: Optional[ErrorCode] = None
    ) -> None:
        """
        Initialize the exception with status code, detail message, and optional context.

        Args:
            status_code: HTTP status code
            detail: Error message
            headers: Optional response headers
            context: Optional additional context for logging
            code: Optional reason code exposed to clients
        """
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.context = context or {}
        self.code = code

    def __str__(self) -> str:
        return str(self.detail)

class DatabaseError(VTypeException):
    """Raised when database operations fail."""
    def __init__(
        self,
        detail: str = "Database operation failed",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            context=context
        )

class AuthenticationError(VTypeException):
    """Raised for authentication-related failures."""
    default_detail = "Authentication failed"
    default_code: Optional[ErrorCode] = None

    def __init__(
        self,
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        code: Optional[ErrorCode] = None
    ) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail or self.default_detail,
            headers={"WWW-Authenticate": "Bearer"},
            context=context,
            code=code or self.default_code
        )

class MissingTokenError(AuthenticationError):
    """No bearer token was presented."""
    default_detail = "Access token required"
    default_code = ErrorCode.TOKEN_MISSING

class InvalidTokenError(AuthenticationError):
    """Token failed signature, structure or claim validation."""
    default_detail = "Invalid token"
    default_code = ErrorCode.INVALID_TOKEN

class TokenExpiredError(InvalidTokenError):
    """Token signature is valid but its expiry has passed."""
    default_detail = "Token expired"
    default_code = ErrorCode.TOKEN_EXPIRED

class InvalidTokenTypeError(InvalidTokenError):
    """Token is valid but of the wrong kind for this operation."""
    default_detail = "Invalid token type"
    default_code = ErrorCode.INVALID_TOKEN_TYPE

class TokenRevokedError(AuthenticationError):
    """Access token is on the blacklist."""
    default_detail = "Token has been revoked"
    default_code = ErrorCode.TOKEN_REVOKED

class InvalidRefreshTokenError(AuthenticationError):
    """Refresh token does not match the one on record for its user."""
    default_detail = "Invalid refresh token"
    default_code = ErrorCode.INVALID_REFRESH_TOKEN

class InvalidCredentialsError(AuthenticationError):
    """Login attempted with unknown identity or wrong password."""
    default_detail = "Invalid credentials"
    default_code = ErrorCode.INVALID_CREDENTIALS

class UserUnavailableError(AuthenticationError):
    """Token subject no longer resolves to an active account."""
    default_detail = "User not found or deactivated"
    default_code = ErrorCode.USER_NOT_FOUND

    @classmethod
    def deactivated(cls, context: Optional[Dict[str, Any]] = None) -> "UserUnavailableError":
        return cls(
            detail="User account is deactivated",
            context=context,
            code=ErrorCode.USER_DEACTIVATED
        )

class AuthorizationError(VTypeException):
    """Raised when user lacks required permissions."""
    def __init__(
        self,
        detail: str = "Not authorized",
        headers: Optional[Dict[str, str]] = None
    ) -> None:
        """Initialize the exception with status code 403."""
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            headers=headers
        )

class ResourceNotFound(VTypeException):
    """Raised when requested resource does not exist."""
    def __init__(
        self,
        detail: str = "Resource not found",
        context: Optional[Dict[str, Any]] = None,
        code: Optional[ErrorCode] = None
    ) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            context=context,
            code=code
        )

class ReceiverNotFound(ResourceNotFound):
    """Raised when a message targets an identity the directory does not know."""
    def __init__(
        self,
        detail: str = "Target user not found",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(detail=detail, context=context, code=ErrorCode.RECEIVER_NOT_FOUND)

class ValidationError(VTypeException):
    """Raised when request data fails validation."""
    def __init__(
        self,
        detail: str = "Validation error",
        errors: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        context = context or {}
        if errors:
            context["validation_errors"] = errors
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            context=context
        )

    def errors(self) -> Any:
        return self.context.get("validation_errors")

class ConflictError(VTypeException):
    """Raised when a resource with the same unique fields already exists."""
    def __init__(
        self,
        detail: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            context=context
        )

class ServiceUnavailable(VTypeException):
    """Raised when service is temporarily unavailable."""
    def __init__(
        self,
        detail: str = "Service temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        code: Optional[ErrorCode] = None
    ) -> None:
        headers = {"Retry-After": str(retry_after)} if retry_after else None
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            headers=headers,
            context=context,
            code=code
        )

class StoreUnavailable(ServiceUnavailable):
    """Raised when the key-value store cannot be reached."""
    def __init__(
        self,
        detail: str = "Token store unavailable",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(
            detail=detail,
            retry_after=5,
            context=context,
            code=ErrorCode.STORE_UNAVAILABLE
        )
