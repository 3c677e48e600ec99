"""SQLAlchemy store implementations."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.email_verification import EmailVerification
from models.profile import Profile
from models.user import User
from services.errors import ConflictError, NotFoundError, StoreError

from .abstract_store import UserStore, VerificationStore

logger = logging.getLogger(__name__)


class SQLUserStore(UserStore):
    """Persist users through the Flask-SQLAlchemy session."""

    def create(
        self,
        *,
        email: str,
        role: str,
        provider: str,
        provider_id: str | None = None,
        password_hash: str | None = None,
        is_verified: bool = False,
    ) -> User:
        user = User(
            email=email,
            role=role,
            provider=provider,
            provider_id=provider_id or None,
            password_hash=password_hash or None,
            is_verified=is_verified,
        )
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise ConflictError(f"Duplicate identity for {email} ({provider})") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Could not create user: {exc}") from exc
        return user

    def _one(self, query, what: str) -> User:
        try:
            user = query.first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"User lookup failed: {exc}") from exc
        if user is None:
            raise NotFoundError(f"No user with {what}")
        return user

    def get_by_id(self, user_id: str) -> User:
        return self._one(User.query.filter_by(id=user_id), f"id {user_id}")

    def get_by_email(self, email: str) -> User:
        return self._one(User.query.filter_by(email=email), f"email {email}")

    def get_by_provider_identity(self, provider: str, provider_id: str) -> User:
        return self._one(
            User.query.filter_by(provider=provider, provider_id=provider_id),
            f"{provider} subject {provider_id}",
        )

    def get_profile(self, user_id: str) -> Profile | None:
        try:
            return Profile.query.filter_by(user_id=user_id).first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Profile lookup failed: {exc}") from exc


class SQLVerificationStore(VerificationStore):
    """Persist one-time codes through the Flask-SQLAlchemy session."""

    def insert(self, email: str, code: str, expires_at: datetime) -> EmailVerification:
        record = EmailVerification(email=email, code=code, expires_at=expires_at)
        db.session.add(record)
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Could not store verification code: {exc}") from exc
        return record

    def find_matching(self, email: str, code: str, now: datetime) -> EmailVerification | None:
        try:
            return (
                EmailVerification.query.filter(
                    EmailVerification.email == email,
                    EmailVerification.code == code,
                    EmailVerification.is_used.is_(False),
                    EmailVerification.expires_at > now,
                )
                .order_by(EmailVerification.created_at.desc())
                .first()
            )
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Verification lookup failed: {exc}") from exc

    def mark_used(self, verification_id: str) -> bool:
        # Single conditional UPDATE: concurrent callers race on the row and
        # only one sees a matched row count.
        try:
            updated = (
                EmailVerification.query.filter(
                    EmailVerification.id == verification_id,
                    EmailVerification.is_used.is_(False),
                )
                .update({"is_used": True}, synchronize_session="fetch")
            )
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"Could not consume verification code: {exc}") from exc
        if updated != 1:
            logger.warning("Verification %s was already consumed", verification_id)
        return updated == 1
