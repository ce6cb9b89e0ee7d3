from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID, uuid4

import pytest

from src.core.config import Settings
from src.core.errors import PersistenceError
from src.core.security.passwords import PasswordHasher
from src.core.security.tokens import TokenIssuer
from src.models import Organization, SubscriptionStatus, User, UserRole, UserStatus
from src.services.auth_service import AuthService

ACCESS_SECRET = "test-access-secret-0123456789abcdef0123"
REFRESH_SECRET = "test-refresh-secret-0123456789abcdef012"
PASSWORD = "Valid1Pass!"


class FixedClock:
    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryIdentityStore:
    def __init__(self) -> None:
        self.organizations: dict[UUID, Organization] = {}
        self.users: dict[UUID, User] = {}
        self.last_login_calls: list[tuple[UUID, datetime]] = []
        self.fail_on_create = False
        self.fail_last_login = False

    async def find_identity_by_email(self, email: str) -> User | None:
        return next(
            (user for user in self.users.values() if user.email == email and user.deleted_at is None),
            None,
        )

    async def find_identity_by_id(self, user_id: UUID, *, active_only: bool = False) -> User | None:
        user = self.users.get(user_id)
        if user is None or user.deleted_at is not None:
            return None
        if active_only and user.status != UserStatus.ACTIVE:
            return None
        return user

    async def find_organization_by_slug(
        self, slug: str, *, active_only: bool = False
    ) -> Organization | None:
        for organization in self.organizations.values():
            if organization.slug != slug or organization.deleted_at is not None:
                continue
            if active_only and not organization.is_active:
                return None
            return organization
        return None

    async def create_organization_and_owner(
        self,
        organization_fields: Mapping[str, Any],
        owner_fields: Mapping[str, Any],
    ) -> tuple[Organization, User]:
        if self.fail_on_create:
            raise PersistenceError()
        organization = self.add_organization(**organization_fields)
        owner = self.add_user(organization, **owner_fields)
        return organization, owner

    async def update_last_login(self, user_id: UUID, timestamp: datetime) -> None:
        if self.fail_last_login:
            raise PersistenceError()
        self.last_login_calls.append((user_id, timestamp))

    async def ping(self) -> bool:
        return True

    def add_organization(self, **fields: Any) -> Organization:
        now = datetime.now(timezone.utc)
        values = {
            "name": "Acme",
            "slug": "acme",
            "subscription_status": SubscriptionStatus.TRIAL,
            "is_active": True,
        }
        values.update(fields)
        organization = Organization(id=uuid4(), created_at=now, updated_at=now, version=1, **values)
        self.organizations[organization.id] = organization
        return organization

    def add_user(self, organization: Organization, **fields: Any) -> User:
        now = datetime.now(timezone.utc)
        values = {
            "email": f"{uuid4().hex[:8]}@example.com",
            "password_hash": "not-a-bcrypt-hash",
            "first_name": "Ada",
            "last_name": "Lovelace",
            "role": UserRole.MEMBER,
            "status": UserStatus.ACTIVE,
        }
        values.update(fields)
        user = User(
            id=uuid4(),
            organization_id=organization.id,
            created_at=now,
            updated_at=now,
            version=1,
            **values,
        )
        user.organization = organization
        self.users[user.id] = user
        return user


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        jwt_secret=ACCESS_SECRET,
        jwt_refresh_secret=REFRESH_SECRET,
        password_hash_rounds=4,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def issuer(clock: FixedClock) -> TokenIssuer:
    return TokenIssuer(
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_expires_in="1h",
        refresh_expires_in="7d",
        clock=clock,
    )


@pytest.fixture
def store() -> InMemoryIdentityStore:
    return InMemoryIdentityStore()


@pytest.fixture
def service(
    store: InMemoryIdentityStore,
    hasher: PasswordHasher,
    issuer: TokenIssuer,
    clock: FixedClock,
) -> AuthService:
    return AuthService(store, hasher, issuer, clock=clock)
