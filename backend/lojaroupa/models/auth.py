from __future__ import annotations

from ..extensions import db
from lojaroupa.time_utils import to_utc_z


ACCESS_LEVELS = ("admin", "user", "guest")


class User(db.Model):
    """
    Back-office account. Every journal entry is attributed to one.

    password_hash is bcrypt and never leaves the model (not in to_dict).
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    access_level = db.Column(db.String(16), nullable=False, default="user")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.access_level == "admin"

    def summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "access_level": self.access_level,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class ActiveSession(db.Model):
    """
    The one live session per user.

    Logging in replaces the row, so only the most recently issued token is
    accepted. Only the SHA-256 of the token is stored.
    """
    __tablename__ = "active_sessions"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_active_sessions_user"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    token_hash = db.Column(db.String(64), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    user = db.relationship("User", backref=db.backref("active_session", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
        }
