# Overview: Service-layer operations for user administration.

import logging

from ..errors import ConflictError, NotFound
from ..extensions import db
from ..models import ActiveSession, JournalEntry, User
from .auth_service import hash_password

logger = logging.getLogger(__name__)


def list_users() -> list[dict]:
    return [u.to_dict() for u in db.session.query(User).order_by(User.id.asc()).all()]


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    return user


def _ensure_email_free(email: str, *, exclude_id: int | None = None) -> None:
    query = db.session.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Email already registered.")


def create_user(*, name: str, email: str, password: str, access_level: str = "user") -> User:
    """
    Create a user with a bcrypt password hash.

    Raises ConflictError if the email is taken.
    """
    email = email.strip().lower()
    _ensure_email_free(email)

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        access_level=access_level,
    )
    db.session.add(user)
    db.session.commit()
    logger.info("User %s created (%s)", user.id, access_level)
    return user


def update_user(user_id: int, patch: dict) -> User:
    user = get_user(user_id)

    if "email" in patch:
        _ensure_email_free(patch["email"], exclude_id=user_id)
        user.email = patch["email"]
    if "name" in patch:
        user.name = patch["name"]
    if "access_level" in patch:
        user.access_level = patch["access_level"]
    if "password" in patch:
        user.password_hash = hash_password(patch["password"])

    db.session.commit()
    return user


def delete_user(user_id: int) -> None:
    user = get_user(user_id)
    if db.session.query(JournalEntry.id).filter_by(user_id=user_id).first() is not None:
        raise ConflictError("User has transaction history and cannot be deleted.")

    db.session.query(ActiveSession).filter_by(user_id=user_id).delete(synchronize_session=False)
    db.session.delete(user)
    db.session.commit()
    logger.info("User %s deleted", user_id)
