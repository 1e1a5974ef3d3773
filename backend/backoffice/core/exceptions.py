"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. Consistent error handling across the API
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data (e.g. the full list
   of offending user ids in a batched validation)
4. No sensitive data leaks in error messages

IMPORTANT: Business conditions are always raised as AppException subclasses.
Only programming errors surface as unrecoverable faults.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Additional context for debugging (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        sensitive_fields = {"password", "token", "secret", "key", "api_key"}
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(AppException):
    """
    Raised when no valid caller identity is available.

    HTTP Status: 401 Unauthorized
    """

    status_code = 401
    default_message = "Authentication failed"


class AuthorizationError(AppException):
    """
    Raised when the caller lacks permissions for an action.

    WHY: Distinguishing authorization (403) from authentication (401) lets
    clients tell "log in" apart from "you are not allowed".

    HTTP Status: 403 Forbidden
    """

    status_code = 403
    default_message = "You do not have permission to perform this action"


class TokenExpiredError(AuthenticationError):
    """
    Raised when JWT token has expired.

    HTTP Status: 401 Unauthorized
    """

    default_message = "Token has expired"


class TokenInvalidError(AuthenticationError):
    """
    Raised when JWT token is malformed or has invalid signature.

    HTTP Status: 401 Unauthorized
    """

    default_message = "Token is invalid"


class InsufficientPermissionsError(AuthorizationError):
    """
    Raised when the caller's system role doesn't allow an action.

    HTTP Status: 403 Forbidden
    """

    default_message = "Insufficient permissions"


class OrganizationAccessDenied(AuthorizationError):
    """
    Raised when the caller's ownership of an organization doesn't satisfy
    the guard protecting the route.

    HTTP Status: 403 Forbidden
    """

    default_message = "Access to this organization denied"


# ============================================================================
# Validation & Input Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Validation failed"


class InputError(ValidationError):
    """
    Raised when input is malformed (e.g. an organization id that is not a UUID).

    HTTP Status: 400 Bad Request
    """

    default_message = "Invalid input"


class InvalidOwnersError(ValidationError):
    """
    Raised when one or more user ids cannot become (or are not) owners.

    The complete offending set is carried in ``context["user_ids"]``.

    HTTP Status: 400 Bad Request
    """

    default_message = "Invalid owners"


class InactiveUserError(ValidationError):
    """
    Raised when an inactive user is proposed as an owner.

    HTTP Status: 400 Bad Request
    """

    default_message = "User is not active"


class LastOwnerError(ValidationError):
    """
    Raised when a mutation would leave an organization without active owners.

    HTTP Status: 400 Bad Request
    """

    default_message = "An organization must keep at least one active owner"


# ============================================================================
# Resource Exceptions
# ============================================================================


class ResourceNotFoundError(AppException):
    """
    Raised when a requested resource doesn't exist.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    default_message = "Resource not found"


class OrganizationNotFoundError(ResourceNotFoundError):
    """Organization not found."""

    default_message = "Organization not found"


class UserNotFoundError(ResourceNotFoundError):
    """User not found."""

    default_message = "User not found"


class OwnershipNotFoundError(ResourceNotFoundError):
    """No ownership record exists for the (organization, user) pair."""

    default_message = "Ownership record not found"


class ConflictError(AppException):
    """
    Raised when a request conflicts with current state.

    HTTP Status: 409 Conflict
    """

    status_code = 409
    default_message = "Conflict with current state"


class ResourceAlreadyExistsError(ConflictError):
    """
    Raised when attempting to create a resource that already exists
    (e.g. email already registered).

    HTTP Status: 409 Conflict
    """

    default_message = "Resource already exists"


class OrganizationNameConflictError(ResourceAlreadyExistsError):
    """An organization with this name already exists."""

    default_message = "An organization with this name already exists"


class OwnershipConflictError(ConflictError):
    """One or more users already hold an ownership record for the organization."""

    default_message = "Users are already owners of this organization"


# ============================================================================
# Database Exceptions
# ============================================================================


class DatabaseError(AppException):
    """
    Raised when a database operation fails unexpectedly.

    WHY: Store faults are converted to application exceptions with safe
    error messages (no SQL exposed).

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    default_message = "Database error"
