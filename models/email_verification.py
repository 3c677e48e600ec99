"""EmailVerification model definition."""

import uuid

from utils.clock import utcnow

from . import db


class EmailVerification(db.Model):
    """A one-time code proving control of an email address.

    Several outstanding codes may exist for the same email. Rows are never
    deleted here; expired and used rows are left for a retention job.
    """

    __tablename__ = "email_verifications"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = db.Column(db.String(255), nullable=False, index=True)
    code = db.Column(db.String(6), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    is_used = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return (
            f"<EmailVerification id={self.id} email={self.email} used={self.is_used}>"
        )
