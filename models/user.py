"""User model definition."""

import uuid

from utils.clock import utcnow

from . import db


ROLE_MENTOR = "mentor"
ROLE_MENTEE = "mentee"
ROLE_ADMIN = "admin"
ROLES = (ROLE_MENTOR, ROLE_MENTEE, ROLE_ADMIN)
SELF_SERVICE_ROLES = (ROLE_MENTOR, ROLE_MENTEE)

PROVIDER_LOCAL = "local"
PROVIDER_EMAIL = "email"
PROVIDER_GOOGLE = "google"
PROVIDER_APPLE = "apple"


def _new_id() -> str:
    return str(uuid.uuid4())


class User(db.Model):
    """A platform account: mentor, mentee or administrator."""

    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint(
            "provider", "provider_id", name="uq_users_provider_identity"
        ),
        db.CheckConstraint(
            "role IN ('mentor', 'mentee', 'admin')", name="ck_users_role"
        ),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(16), nullable=False)
    provider = db.Column(
        db.String(16),
        nullable=False,
        default=PROVIDER_LOCAL,
        server_default=db.text("'local'"),
    )
    # NULL for local and email accounts so the composite constraint only
    # applies to external identities.
    provider_id = db.Column(db.String(255), nullable=True)
    is_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    profile = db.relationship("Profile", back_populates="user", uselist=False)

    @property
    def can_authenticate(self) -> bool:
        """Local accounts need a password; every other provider is external."""

        if self.provider == PROVIDER_LOCAL:
            return bool(self.password_hash)
        return True

    def to_dict(self) -> dict:
        """Serialize the user for API responses."""

        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "provider": self.provider,
            "is_verified": self.is_verified,
            "profile": self.profile.to_dict() if self.profile else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email} ({self.provider})>"
