# Overview: Bearer session tokens carrying the shop context of a user.

"""
Session Token Service

WHY: Every request must arrive with a shop context. The token pins the
user and the user's shop at issue time; validate_session turns it back
into that context.

SECURITY:
- 32-byte random tokens from secrets.token_hex
- only the SHA-256 hash is stored
- absolute expiry (SESSION_TTL_HOURS) and explicit revocation
- deactivated users or shops invalidate their tokens
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, Shop, User
from ..time_utils import utcnow
from .tenant_service import ShopScope


@dataclass
class SessionContext:
    """Validated session: who is calling, and on behalf of which shop."""
    user: User
    session: SessionToken
    shop_id: int

    @property
    def scope(self) -> ShopScope:
        return ShopScope(shop_id=self.shop_id, user_id=self.user.id)


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 is enough for high-entropy random tokens."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(user_id: int) -> tuple[SessionToken, str]:
    """
    Issue a token for user_id.

    Returns (session_record, plaintext_token); only the hash is persisted.
    Raises ValueError if the user or the user's shop is missing/inactive.
    """
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user or not user.is_active:
        raise ValueError("User not found")
    shop = db.session.query(Shop).filter_by(id=user.shop_id).first()
    if not shop or not shop.is_active:
        raise ValueError("Shop is not active")

    plaintext_token = generate_token()
    now = utcnow()
    session = SessionToken(
        user_id=user.id,
        shop_id=user.shop_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        expires_at=now + timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24)),
    )
    db.session.add(session)
    db.session.commit()
    return session, plaintext_token


def validate_session(token: str) -> SessionContext | None:
    """
    Return the SessionContext for a live token, else None.

    None for unknown, expired or revoked tokens and for tokens whose user
    or shop has been deactivated.
    """
    session = (
        db.session.query(SessionToken)
        .filter_by(token_hash=hash_token(token))
        .filter(SessionToken.revoked_at.is_(None))
        .first()
    )
    if not session:
        return None
    if session.expires_at < utcnow():
        return None

    user = session.user
    if not user or not user.is_active:
        return None
    shop = db.session.query(Shop).filter_by(id=session.shop_id).first()
    if not shop or not shop.is_active:
        return None

    return SessionContext(user=user, session=session, shop_id=session.shop_id)


def revoke_session(token: str) -> bool:
    """Returns True if a live session was revoked."""
    session = (
        db.session.query(SessionToken)
        .filter_by(token_hash=hash_token(token))
        .filter(SessionToken.revoked_at.is_(None))
        .first()
    )
    if not session:
        return False
    session.revoked_at = utcnow()
    db.session.commit()
    return True
