"""Core SQLAlchemy models (2.x style) for nominations and admin access."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Nomination(Base):
    """Submitted nominations. Rows are never updated by the public flows."""
    __tablename__ = "nominations"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)

    # Nominator
    nominator_name: Mapped[str | None] = mapped_column(Text)
    nominator_affiliation: Mapped[str | None] = mapped_column(Text)
    nominator_address: Mapped[str | None] = mapped_column(Text)
    nominator_email: Mapped[str | None] = mapped_column(Text)
    nominator_mobile: Mapped[str | None] = mapped_column(Text)

    category: Mapped[str | None] = mapped_column(Text)

    # Nominee
    nominee_name: Mapped[str | None] = mapped_column(Text)
    nominee_father: Mapped[str | None] = mapped_column(Text)
    nominee_degree: Mapped[str | None] = mapped_column(Text)
    nominee_branch: Mapped[str | None] = mapped_column(Text)
    nominee_year: Mapped[int | None] = mapped_column(Integer)  # NULL means unknown
    nominee_qualifications: Mapped[str | None] = mapped_column(Text)
    nominee_present_position: Mapped[str | None] = mapped_column(Text)
    nominee_past_positions: Mapped[str | None] = mapped_column(Text)
    nominee_address: Mapped[str | None] = mapped_column(Text)
    nominee_email: Mapped[str | None] = mapped_column(Text)
    nominee_mobile: Mapped[str | None] = mapped_column(Text)
    nominee_linkedin: Mapped[str | None] = mapped_column(Text)
    nominee_other_info: Mapped[str | None] = mapped_column(Text)

    assessment_note: Mapped[str | None] = mapped_column(Text)

    # CV attachment
    cv_reference: Mapped[str | None] = mapped_column(String(255))
    cv_filename: Mapped[str | None] = mapped_column(String(255))
    cv_content_type: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_nominations_created_at", "created_at"),
    )


class AdminPrincipal(Base):
    """Administrator accounts, seeded by init_db.py."""
    __tablename__ = "admins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(150), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class AdminSession(Base):
    """Server-side admin sessions.

    Only a keyed hash of the cookie token is stored, so a leaked table
    cannot be replayed as cookies.
    """
    __tablename__ = "admin_sessions"

    token_hash: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(String(150), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime)
