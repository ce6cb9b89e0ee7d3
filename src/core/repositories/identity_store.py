from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.errors import ConflictError, PersistenceError
from src.models.enums import UserStatus
from src.models.organization import Organization
from src.models.user import User

logger = logging.getLogger(__name__)


class IdentityStore(Protocol):
    async def find_identity_by_email(self, email: str) -> User | None: ...

    async def find_identity_by_id(self, user_id: UUID, *, active_only: bool = False) -> User | None: ...

    async def find_organization_by_slug(
        self, slug: str, *, active_only: bool = False
    ) -> Organization | None: ...

    async def create_organization_and_owner(
        self,
        organization_fields: Mapping[str, Any],
        owner_fields: Mapping[str, Any],
    ) -> tuple[Organization, User]: ...

    async def update_last_login(self, user_id: UUID, timestamp: datetime) -> None: ...

    async def ping(self) -> bool: ...


class SqlAlchemyIdentityStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_identity_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email).where(User.deleted_at.is_(None))
        return await self._scalar(stmt)

    async def find_identity_by_id(self, user_id: UUID, *, active_only: bool = False) -> User | None:
        stmt = select(User).where(User.id == user_id).where(User.deleted_at.is_(None))
        if active_only:
            stmt = stmt.where(User.status == UserStatus.ACTIVE)
        return await self._scalar(stmt)

    async def find_organization_by_slug(
        self, slug: str, *, active_only: bool = False
    ) -> Organization | None:
        stmt = (
            select(Organization)
            .where(Organization.slug == slug)
            .where(Organization.deleted_at.is_(None))
        )
        if active_only:
            stmt = stmt.where(Organization.is_active.is_(True))
        return await self._scalar(stmt)

    async def create_organization_and_owner(
        self,
        organization_fields: Mapping[str, Any],
        owner_fields: Mapping[str, Any],
    ) -> tuple[Organization, User]:
        organization = Organization(**organization_fields)
        owner = User(**owner_fields)
        owner.organization = organization

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add_all([organization, owner])
                    await session.flush()
        except IntegrityError as exc:
            logger.info("Registration aborted by a unique constraint for slug=%s", organization.slug)
            raise ConflictError("Email or organization slug already exists") from exc
        except SQLAlchemyError as exc:
            logger.exception("Registration transaction failed for slug=%s", organization.slug)
            raise PersistenceError() from exc

        return organization, owner

    async def update_last_login(self, user_id: UUID, timestamp: datetime) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        update(User)
                        .where(User.id == user_id)
                        .values(last_login_at=timestamp)
                        .execution_options(synchronize_session=False)
                    )
        except SQLAlchemyError as exc:
            raise PersistenceError() from exc

    async def ping(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    async def _scalar(self, stmt: Any) -> Any:
        try:
            async with self._session_factory() as session:
                return await session.scalar(stmt)
        except SQLAlchemyError as exc:
            logger.exception("Identity store query failed")
            raise PersistenceError() from exc
