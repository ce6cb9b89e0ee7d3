from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.core.config import Settings
from src.core.context import set_current_organization_id
from src.core.errors import InvalidTokenError, UnauthenticatedError
from src.core.security.tokens import AccessClaims
from src.core.tenant_guard import TenantAccessGuard
from src.models.organization import Organization
from src.models.user import User
from src.services.auth_service import AuthService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(slots=True)
class AuthContext:
    user: User
    claims: AccessClaims

    @property
    def user_id(self) -> UUID:
        return self.user.id

    @property
    def organization_id(self) -> UUID:
        return self.user.organization_id


@dataclass(slots=True)
class TenantContext:
    user: User
    organization: Organization


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_tenant_guard(request: Request) -> TenantAccessGuard:
    return request.app.state.tenant_guard


async def require_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    service: AuthService = Depends(get_auth_service),
) -> AuthContext:
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError()

    try:
        claims = service.tokens.verify_access_token(credentials.credentials)
        user_id = UUID(claims.subject)
    except (InvalidTokenError, ValueError) as exc:
        raise UnauthenticatedError() from exc

    user = await service.validate_identity(user_id)
    if user is None:
        logger.info("Access token subject=%s is missing or inactive", user_id)
        raise UnauthenticatedError()

    organization = user.organization
    if organization is None or not organization.is_active:
        logger.info("Access token subject=%s belongs to an inactive organization", user_id)
        raise UnauthenticatedError()

    request.state.user = user
    request.state.auth_claims = claims
    return AuthContext(user=user, claims=claims)


async def require_tenant_context(
    request: Request,
    auth: AuthContext = Depends(require_auth_context),
    guard: TenantAccessGuard = Depends(get_tenant_guard),
    settings: Settings = Depends(get_app_settings),
) -> TenantContext:
    organization = await guard.resolve(auth.user, request.headers.get(settings.tenant_header_name))

    request.state.organization = organization
    set_current_organization_id(organization.id)
    return TenantContext(user=auth.user, organization=organization)
