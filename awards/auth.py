"""Admin session gate: credential check and server-side sessions.

Passwords are verified against salted werkzeug hashes. Sessions are opaque
random tokens carried in a cookie; the database keeps only an HMAC of each
token, its expiry and its revocation time.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from datetime import timedelta

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from werkzeug.security import check_password_hash, generate_password_hash

from . import models
from .db import get_session
from .repositories import AdminRepository

logger = logging.getLogger(__name__)

# Compared against when the username is unknown, so both failure paths hash once
_DUMMY_HASH = generate_password_hash(secrets.token_urlsafe(16))


async def authenticate(session: AsyncSession, username: str, password: str) -> bool:
    """Check admin credentials.

    Returns False for an unknown user and for a wrong password alike;
    the two cases are indistinguishable to the caller.
    """
    admin = await AdminRepository(session).get_by_username(username)
    password_hash = admin.password_hash if admin is not None else _DUMMY_HASH
    matched = check_password_hash(password_hash, password)
    return admin is not None and matched


class SessionStore:
    """Issue, resolve and revoke admin session tokens."""

    def __init__(self, session: AsyncSession, secret: str, ttl: timedelta = timedelta(hours=24)) -> None:
        self.session = session
        self._secret = secret.encode()
        self.ttl = ttl

    def _digest(self, token: str) -> str:
        return hmac.new(self._secret, token.encode(), hashlib.sha256).hexdigest()

    async def create(self, username: str) -> str:
        """Start a session for ``username`` and return the cookie token."""
        token = secrets.token_urlsafe(32)
        now = models.utcnow()
        self.session.add(
            models.AdminSession(
                token_hash=self._digest(token),
                username=username,
                created_at=now,
                expires_at=now + self.ttl,
            )
        )
        await self.session.commit()
        logger.info(f"Admin session started for {username}")
        return token

    async def resolve(self, token: str | None) -> str | None:
        """Return the username bound to a live session, or None."""
        if not token:
            return None
        record = await self.session.get(models.AdminSession, self._digest(token))
        if record is None or record.revoked_at is not None:
            return None
        if record.expires_at <= models.utcnow():
            return None
        return record.username

    async def revoke(self, token: str | None) -> None:
        """Revoke a session. Unknown or already revoked tokens are ignored."""
        if not token:
            return
        await self.session.execute(
            update(models.AdminSession)
            .where(
                models.AdminSession.token_hash == self._digest(token),
                models.AdminSession.revoked_at.is_(None),
            )
            .values(revoked_at=models.utcnow())
        )
        await self.session.commit()


def get_session_store(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> SessionStore:
    config = request.app.state.settings.session
    return SessionStore(
        session,
        config.secret.get_secret_value(),
        ttl=timedelta(hours=config.ttl_hours),
    )


async def require_admin(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> str:
    """Dependency guarding admin data endpoints.

    Raises:
        HTTPException: 401 when there is no live session
    """
    token = request.cookies.get(request.app.state.settings.session.cookie_name)
    username = await store.resolve(token)
    if username is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized. Please log in.",
        )
    return username
