from src.schemas.auth import (
    AuthResponse,
    LoginRequest,
    OrganizationResponse,
    RefreshTokenRequest,
    RegisterRequest,
    UserResponse,
)
from src.schemas.health import HealthResponse, ReadinessResponse

__all__ = [
    "AuthResponse",
    "LoginRequest",
    "OrganizationResponse",
    "RefreshTokenRequest",
    "RegisterRequest",
    "UserResponse",
    "HealthResponse",
    "ReadinessResponse",
]
