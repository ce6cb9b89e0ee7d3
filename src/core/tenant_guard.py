from __future__ import annotations

import logging

from src.core.errors import (
    MissingTenantSelectorError,
    TenantMismatchError,
    TenantNotFoundError,
    UnauthenticatedError,
)
from src.core.repositories.identity_store import IdentityStore
from src.models.organization import Organization
from src.models.user import User

logger = logging.getLogger(__name__)


class TenantAccessGuard:
    """Checks that an authenticated user acts inside their own organization.

    No role bypasses the organization match, super-admin included.
    """

    def __init__(self, store: IdentityStore) -> None:
        self.store = store

    async def resolve(self, user: User | None, tenant_slug: str | None) -> Organization:
        if user is None:
            raise UnauthenticatedError()

        slug = (tenant_slug or "").strip()
        if not slug:
            raise MissingTenantSelectorError()

        organization = await self.store.find_organization_by_slug(slug, active_only=True)
        if organization is None or not organization.is_active:
            raise TenantNotFoundError()

        if user.organization_id != organization.id:
            logger.info(
                "Tenant mismatch: user=%s organization=%s requested=%s",
                user.id,
                user.organization_id,
                organization.id,
            )
            raise TenantMismatchError()

        return organization
