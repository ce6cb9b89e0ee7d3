from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

from src.core.errors import (
    DuplicateEmailError,
    DuplicateSlugError,
    InactiveAccountError,
    InactiveOrganizationError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    InvalidSlugError,
    InvalidTokenError,
    PersistenceError,
    WeakPasswordError,
)
from src.core.repositories.identity_store import IdentityStore
from src.core.security.passwords import PasswordHasher, validate_password_strength
from src.core.security.tokens import AccessClaims, Clock, TokenIssuer
from src.models.enums import SubscriptionStatus, UserRole, UserStatus
from src.models.organization import Organization
from src.models.user import User

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
DEFAULT_TRIAL_PERIOD_DAYS = 30


@dataclass(slots=True)
class AuthResult:
    user: User
    organization: Organization
    access_token: str
    refresh_token: str
    expires_in: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    def __init__(
        self,
        store: IdentityStore,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        *,
        trial_period_days: int = DEFAULT_TRIAL_PERIOD_DAYS,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.trial_period_days = trial_period_days
        self._clock = clock or _utcnow

    async def register(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        organization_name: str,
        organization_slug: str,
        phone: str | None = None,
    ) -> AuthResult:
        if await self.store.find_identity_by_email(email) is not None:
            raise DuplicateEmailError()

        if await self.store.find_organization_by_slug(organization_slug) is not None:
            raise DuplicateSlugError()

        if not SLUG_PATTERN.match(organization_slug):
            raise InvalidSlugError()

        if not validate_password_strength(password):
            raise WeakPasswordError()

        password_hash = await asyncio.to_thread(self.hasher.hash, password)
        now = self._clock()

        organization, user = await self.store.create_organization_and_owner(
            {
                "name": organization_name,
                "slug": organization_slug,
                "subscription_status": SubscriptionStatus.TRIAL,
                "trial_ends_at": now + timedelta(days=self.trial_period_days),
                "is_active": True,
            },
            {
                "email": email,
                "password_hash": password_hash,
                "first_name": first_name,
                "last_name": last_name,
                "phone": phone,
                "role": UserRole.OWNER,
                "status": UserStatus.ACTIVE,
                "email_verified_at": now,
            },
        )
        logger.info("Registered organization=%s owner=%s", organization.id, user.id)
        return self._issue(user, organization)

    async def login(self, *, email: str, password: str) -> AuthResult:
        user = await self.store.find_identity_by_email(email)
        if user is None:
            await asyncio.to_thread(self.hasher.verify, password, self.hasher.dummy_hash)
            logger.info("Login rejected: unknown email")
            raise InvalidCredentialsError()

        if not await asyncio.to_thread(self.hasher.verify, password, user.password_hash):
            logger.info("Login rejected: bad password for user=%s", user.id)
            raise InvalidCredentialsError()

        if user.status != UserStatus.ACTIVE:
            raise InactiveAccountError()

        organization = user.organization
        if organization is None or not organization.is_active:
            raise InactiveOrganizationError()

        now = self._clock()
        try:
            await self.store.update_last_login(user.id, now)
        except PersistenceError:
            logger.warning("Could not record last login for user=%s", user.id, exc_info=True)
        else:
            user.last_login_at = now

        return self._issue(user, organization)

    async def refresh(self, refresh_token: str) -> AuthResult:
        try:
            subject = self.tokens.verify_refresh_token(refresh_token)
            user_id = UUID(subject)
        except (InvalidTokenError, ValueError) as exc:
            logger.info("Refresh rejected: token failed verification")
            raise InvalidRefreshTokenError() from exc

        user = await self.store.find_identity_by_id(user_id)
        if user is None or user.status != UserStatus.ACTIVE:
            raise InvalidRefreshTokenError()

        organization = user.organization
        if organization is None or not organization.is_active:
            raise InvalidRefreshTokenError()

        return self._issue(user, organization)

    async def validate_identity(self, user_id: UUID) -> User | None:
        user = await self.store.find_identity_by_id(user_id, active_only=True)
        if user is None or user.status != UserStatus.ACTIVE:
            return None
        return user

    def _issue(self, user: User, organization: Organization) -> AuthResult:
        claims = AccessClaims(
            subject=str(user.id),
            email=user.email,
            organization_id=str(user.organization_id),
            role=UserRole(user.role).value,
        )
        return AuthResult(
            user=user,
            organization=organization,
            access_token=self.tokens.issue_access_token(claims),
            refresh_token=self.tokens.issue_refresh_token(str(user.id)),
            expires_in=self.tokens.access_expires_in_seconds,
        )
