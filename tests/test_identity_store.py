from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError, OperationalError

from src.core.errors import ConflictError, PersistenceError
from src.core.repositories import SqlAlchemyIdentityStore
from src.models import SubscriptionStatus, UserRole, UserStatus


class _Transaction:
    async def __aenter__(self) -> None:
        return None

    async def __aexit__(self, exc_type, exc, tb):  # noqa: ANN001
        return None


class _FakeSession:
    def __init__(self) -> None:
        self.add_all = Mock()
        self.flush = AsyncMock()
        self.execute = AsyncMock()
        self.scalar = AsyncMock(return_value=None)

    def begin(self) -> _Transaction:
        return _Transaction()

    async def __aenter__(self) -> "_FakeSession":
        return self

    async def __aexit__(self, exc_type, exc, tb):  # noqa: ANN001
        return None


def _sql(stmt) -> str:  # noqa: ANN001
    return str(stmt.compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True}))


def _where(stmt) -> str:  # noqa: ANN001
    return _sql(stmt.whereclause)


@pytest.fixture
def session() -> _FakeSession:
    return _FakeSession()


@pytest.fixture
def identity_store(session: _FakeSession) -> SqlAlchemyIdentityStore:
    return SqlAlchemyIdentityStore(lambda: session)


def _fields() -> tuple[dict, dict]:
    now = datetime.now(timezone.utc)
    organization = {
        "name": "Acme",
        "slug": "acme",
        "subscription_status": SubscriptionStatus.TRIAL,
        "is_active": True,
    }
    owner = {
        "email": "owner@acme.test",
        "password_hash": "hash",
        "first_name": "Grace",
        "last_name": "Hopper",
        "role": UserRole.OWNER,
        "status": UserStatus.ACTIVE,
        "email_verified_at": now,
    }
    return organization, owner


@pytest.mark.asyncio
async def test_create_organization_and_owner_links_rows(
    identity_store: SqlAlchemyIdentityStore, session: _FakeSession
) -> None:
    organization, owner = await identity_store.create_organization_and_owner(*_fields())

    assert owner.organization is organization
    assert organization.slug == "acme"
    session.add_all.assert_called_once_with([organization, owner])
    session.flush.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_unique_violation_becomes_conflict(
    identity_store: SqlAlchemyIdentityStore, session: _FakeSession
) -> None:
    session.flush.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

    with pytest.raises(ConflictError) as exc:
        await identity_store.create_organization_and_owner(*_fields())

    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_create_database_failure_becomes_persistence_error(
    identity_store: SqlAlchemyIdentityStore, session: _FakeSession
) -> None:
    session.flush.side_effect = OperationalError("INSERT", {}, Exception("connection lost"))

    with pytest.raises(PersistenceError) as exc:
        await identity_store.create_organization_and_owner(*_fields())

    assert exc.value.status_code == 500


@pytest.mark.asyncio
async def test_find_identity_by_email_excludes_soft_deleted(
    identity_store: SqlAlchemyIdentityStore, session: _FakeSession
) -> None:
    expected = object()
    session.scalar.return_value = expected

    assert await identity_store.find_identity_by_email("owner@acme.test") is expected

    sql = _sql(session.scalar.await_args.args[0])
    assert "users.email = 'owner@acme.test'" in sql
    assert "users.deleted_at IS NULL" in sql


@pytest.mark.asyncio
async def test_find_identity_by_id_active_only_filters_status(
    identity_store: SqlAlchemyIdentityStore, session: _FakeSession
) -> None:
    await identity_store.find_identity_by_id(uuid4(), active_only=True)
    assert "users.status" in _where(session.scalar.await_args.args[0])

    await identity_store.find_identity_by_id(uuid4())
    assert "users.status" not in _where(session.scalar.await_args.args[0])
    assert "users.deleted_at IS NULL" in _where(session.scalar.await_args.args[0])


@pytest.mark.asyncio
async def test_find_organization_by_slug_active_only(
    identity_store: SqlAlchemyIdentityStore, session: _FakeSession
) -> None:
    await identity_store.find_organization_by_slug("acme", active_only=True)

    sql = _sql(session.scalar.await_args.args[0])
    assert "organizations.slug = 'acme'" in sql
    assert "organizations.is_active IS true" in sql
    assert "organizations.deleted_at IS NULL" in sql


@pytest.mark.asyncio
async def test_query_failure_becomes_persistence_error(
    identity_store: SqlAlchemyIdentityStore, session: _FakeSession
) -> None:
    session.scalar.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))

    with pytest.raises(PersistenceError):
        await identity_store.find_identity_by_email("owner@acme.test")


@pytest.mark.asyncio
async def test_update_last_login(identity_store: SqlAlchemyIdentityStore, session: _FakeSession) -> None:
    await identity_store.update_last_login(uuid4(), datetime.now(timezone.utc))
    session.execute.assert_awaited_once()

    session.execute.side_effect = OperationalError("UPDATE", {}, Exception("connection lost"))
    with pytest.raises(PersistenceError):
        await identity_store.update_last_login(uuid4(), datetime.now(timezone.utc))


@pytest.mark.asyncio
async def test_ping_reports_database_health(
    identity_store: SqlAlchemyIdentityStore, session: _FakeSession
) -> None:
    assert await identity_store.ping() is True

    session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
    assert await identity_store.ping() is False
