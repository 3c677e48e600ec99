"""Store abstraction layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from models.email_verification import EmailVerification
from models.profile import Profile
from models.user import User


class UserStore(ABC):
    """Interface for user persistence.

    Lookups raise ``NotFoundError`` when nothing matches and ``StoreError``
    when the backend fails. ``create`` raises ``ConflictError`` when the email
    or the (provider, provider_id) pair is already taken.
    """

    @abstractmethod
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
        """Persist a new user and return it."""

    @abstractmethod
    def get_by_id(self, user_id: str) -> User:
        """Return the user with the given id."""

    @abstractmethod
    def get_by_email(self, email: str) -> User:
        """Return the user owning the given email."""

    @abstractmethod
    def get_by_provider_identity(self, provider: str, provider_id: str) -> User:
        """Return the user linked to an external provider subject."""

    @abstractmethod
    def get_profile(self, user_id: str) -> Profile | None:
        """Return the user's profile, or None if it was never created."""


class VerificationStore(ABC):
    """Interface for one-time code persistence."""

    @abstractmethod
    def insert(self, email: str, code: str, expires_at: datetime) -> EmailVerification:
        """Persist a new unused code."""

    @abstractmethod
    def find_matching(self, email: str, code: str, now: datetime) -> EmailVerification | None:
        """Return one unused, unexpired record for (email, code), if any."""

    @abstractmethod
    def mark_used(self, verification_id: str) -> bool:
        """Flip a record to used if it is still unused.

        Returns True only for the caller whose write took effect.
        """
