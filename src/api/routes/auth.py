from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status

from src.core.auth import (
    AuthContext,
    TenantContext,
    get_auth_service,
    require_auth_context,
    require_tenant_context,
)
from src.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    UserResponse,
)
from src.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await service.register(
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
        organization_name=payload.organization_name,
        organization_slug=payload.organization_slug,
    )
    return AuthResponse.model_validate(result)


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await service.login(email=payload.email, password=payload.password)
    return AuthResponse.model_validate(result)


@router.post("/refresh", response_model=AuthResponse)
async def refresh(
    payload: RefreshTokenRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await service.refresh(payload.refresh_token)
    return AuthResponse.model_validate(result)


@router.get("/me", response_model=UserResponse)
async def get_profile(tenant: TenantContext = Depends(require_tenant_context)) -> UserResponse:
    return UserResponse.model_validate(tenant.user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(auth: AuthContext = Depends(require_auth_context)) -> Response:
    # Tokens are stateless; the client discards them and they lapse at expiry.
    logger.info("Logout for user=%s", auth.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
