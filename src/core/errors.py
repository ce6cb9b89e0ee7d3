from __future__ import annotations

from starlette import status


class ServiceError(Exception):
    """Base class for errors that carry a client-facing status and message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"


class AuthenticationError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication failed"


class AuthorizationError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Access denied"


class NotFoundError(ServiceError):
    # Reported as 403 so callers cannot tell which tenants exist.
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Resource not found"


class PersistenceError(ServiceError):
    default_detail = "Internal server error"


class InvalidSlugError(ValidationError):
    default_detail = "Organization slug must contain only lowercase letters, numbers, and hyphens"


class WeakPasswordError(ValidationError):
    default_detail = "Password does not meet security requirements"


class MissingTenantSelectorError(ValidationError):
    default_detail = "Tenant selector header is required"


class DuplicateEmailError(ConflictError):
    default_detail = "Email already exists"


class DuplicateSlugError(ConflictError):
    default_detail = "Organization slug already exists"


class InvalidCredentialsError(AuthenticationError):
    default_detail = "Invalid credentials"


class InactiveAccountError(AuthenticationError):
    default_detail = "Account is not active"


class InactiveOrganizationError(AuthenticationError):
    default_detail = "Organization is not active"


class InvalidTokenError(AuthenticationError):
    default_detail = "Invalid or expired token"


class InvalidRefreshTokenError(AuthenticationError):
    default_detail = "Invalid refresh token"


class UnauthenticatedError(AuthenticationError):
    default_detail = "Not authenticated"


class TenantNotFoundError(NotFoundError):
    default_detail = "Organization not found or inactive"


class TenantMismatchError(AuthorizationError):
    default_detail = "User does not have access to this organization"
