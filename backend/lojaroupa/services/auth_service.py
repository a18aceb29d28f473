# Overview: Service-layer operations for auth; password hashing, login and JWT issuance.

"""
Authentication Service

Every stock movement is attributed to a user, so every ledger route sits
behind a login.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, default 12)
- Tokens are HS256 JWTs signed with JWT_SECRET, valid JWT_EXPIRES_MINUTES
- A token is only accepted while it matches the user's ActiveSession
  (see session_service.py), so a new login invalidates the previous token
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from flask import current_app

from ..errors import Unauthenticated
from ..extensions import db
from ..models import User
from lojaroupa.time_utils import utcnow
from . import session_service

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    A malformed hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def authenticate(email: str, password: str) -> User | None:
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def issue_token(user: User) -> tuple[str, datetime]:
    """
    Sign a JWT for user. Returns (token, expires_at) with expires_at UTC-naive.

    jti keeps two tokens issued in the same second distinct.
    """
    cfg = current_app.config
    now = utcnow()
    expires_at = now + timedelta(minutes=cfg["JWT_EXPIRES_MINUTES"])
    payload = {
        "sub": str(user.id),
        "access_level": user.access_level,
        "iat": now.replace(tzinfo=timezone.utc),
        "exp": expires_at.replace(tzinfo=timezone.utc),
        "jti": secrets.token_hex(16),
    }
    token = jwt.encode(payload, cfg["JWT_SECRET"], algorithm=cfg["JWT_ALGORITHM"])
    return token, expires_at


def decode_token(token: str) -> dict | None:
    """Claims of a valid, unexpired token; None otherwise."""
    cfg = current_app.config
    try:
        return jwt.decode(token, cfg["JWT_SECRET"], algorithms=[cfg["JWT_ALGORITHM"]])
    except jwt.PyJWTError:
        return None


def login(email: str, password: str) -> tuple[str, User]:
    """
    Authenticate and open the user's single session.

    Raises Unauthenticated on unknown email or wrong password.
    """
    user = authenticate(email, password)
    if user is None:
        logger.info("Failed login for %s", email)
        raise Unauthenticated("Invalid email or password.")

    token, expires_at = issue_token(user)
    user.last_login_at = utcnow()
    session_service.create_session(user.id, token, expires_at)

    logger.info("User %s logged in", user.id)
    return token, user


def logout(user_id: int) -> None:
    session_service.revoke_session(user_id)
