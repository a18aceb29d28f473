# Overview: Service-layer operations for session; one active session per user.

"""
Session Tracking

A signed JWT alone cannot be revoked, so every login also writes the
SHA-256 of its token into the user's ActiveSession row (one per user,
replaced on each login). validate_session() accepts a token only when:
- the signature and exp claim verify
- the user still exists
- the stored hash matches and the session has not expired

Logout deletes the row; the token then fails validation immediately.
"""

import hashlib
from dataclasses import dataclass
from datetime import datetime

from ..extensions import db
from ..models import ActiveSession, User
from lojaroupa.time_utils import utcnow


@dataclass
class SessionContext:
    """Returned by validate_session: who is calling, and under which session."""
    user: User
    session: ActiveSession


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Returns hex-encoded hash string.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(user_id: int, token: str, expires_at: datetime) -> ActiveSession:
    """Insert or replace the user's session and commit."""
    now = utcnow()
    session = db.session.query(ActiveSession).filter_by(user_id=user_id).first()
    if session is None:
        session = ActiveSession(user_id=user_id)
        db.session.add(session)

    session.token_hash = hash_token(token)
    session.created_at = now
    session.expires_at = expires_at

    db.session.commit()
    return session


def validate_session(token: str) -> SessionContext | None:
    """
    Validate a bearer token and return SessionContext if valid.

    Returns None on a bad signature, expired token, unknown user, or a
    token that is not the user's current session.
    """
    # Imported here: auth_service imports this module
    from .auth_service import decode_token

    claims = decode_token(token)
    if not claims:
        return None

    try:
        user_id = int(claims.get("sub"))
    except (TypeError, ValueError):
        return None

    user = db.session.get(User, user_id)
    if user is None:
        return None

    session = db.session.query(ActiveSession).filter_by(user_id=user_id).first()
    if session is None or session.token_hash != hash_token(token):
        return None

    expires_at = session.expires_at
    if expires_at.tzinfo is not None:
        expires_at = expires_at.replace(tzinfo=None)
    if expires_at <= utcnow():
        return None

    return SessionContext(user=user, session=session)


def revoke_session(user_id: int) -> bool:
    """Delete the user's session. Returns False when there was none."""
    session = db.session.query(ActiveSession).filter_by(user_id=user_id).first()
    if session is None:
        return False
    db.session.delete(session)
    db.session.commit()
    return True
