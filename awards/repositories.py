"""Record store access for nominations and admin principals.

Thin wrappers over an ``AsyncSession``. Database errors are not caught
here; callers decide how a failed read or write surfaces.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import generate_password_hash

from . import models

NOMINATION_COLUMNS = frozenset(models.Nomination.__table__.columns.keys())


def _check_columns(names: Iterable[str]) -> None:
    unknown = set(names) - NOMINATION_COLUMNS
    if unknown:
        raise ValueError(f"Unknown nomination fields: {', '.join(sorted(unknown))}")


class NominationRepository:
    """Create, query and fetch nominations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, record: models.Nomination) -> str:
        """Insert and commit a nomination, returning its generated id.

        The session is rolled back before the error propagates on failure.
        """
        try:
            self.session.add(record)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return record.id

    async def find(
        self,
        filters: Mapping[str, Any] | None = None,
        projection: Iterable[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Return matching nominations as dicts, oldest first.

        Args:
            filters: Equality filters on column names
            projection: Columns to include; ``id`` is always included

        Raises:
            ValueError: If a filter or projection names an unknown column
        """
        filters = dict(filters or {})
        fields = ["id"] + [f for f in (projection or NOMINATION_COLUMNS) if f != "id"]
        _check_columns(list(filters) + fields)

        table = models.Nomination.__table__
        query = select(*(table.c[f] for f in fields)).order_by(table.c.created_at, table.c.id)
        for name, value in filters.items():
            query = query.where(table.c[name] == value)

        result = await self.session.execute(query)
        return [dict(row) for row in result.mappings().all()]

    async def get_by_id(self, nomination_id: str) -> models.Nomination | None:
        return await self.session.get(models.Nomination, nomination_id)


class AdminRepository:
    """Lookup and seeding of admin principals."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_username(self, username: str) -> models.AdminPrincipal | None:
        result = await self.session.execute(
            select(models.AdminPrincipal).where(models.AdminPrincipal.username == username)
        )
        return result.scalar_one_or_none()

    async def create(self, username: str, password: str) -> models.AdminPrincipal:
        """Store a new admin with a salted password hash and commit."""
        admin = models.AdminPrincipal(
            username=username,
            password_hash=generate_password_hash(password),
        )
        self.session.add(admin)
        await self.session.commit()
        return admin
