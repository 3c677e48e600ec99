"""Identity resolution: turn a credential into an authenticated identity.

Three login paths converge here. Password login either issues a token or
fails with ``InvalidCredentialsError``. OAuth and email-code logins issue a
token for known users and, for first contact, either return
``NewIdentityPending`` (the caller must pick a role) or create the account
when a role was supplied.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from models.user import (
    PROVIDER_EMAIL,
    PROVIDER_LOCAL,
    SELF_SERVICE_ROLES,
    User,
)
from stores.abstract_store import UserStore

from .delivery import CodeDelivery
from .errors import (
    ConflictError,
    DeliveryError,
    InvalidCredentialsError,
    InvalidInputError,
    NotFoundError,
)
from .oauth import OAuthProviderRegistry
from .passwords import PasswordHasher
from .tokens import AuthenticatedIdentity, TokenService
from .verification_codes import VerificationCodeService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewIdentityPending:
    """First contact from an unknown identity; a role must be chosen."""

    email: str
    provider: str

    def to_dict(self) -> dict:
        return {"is_new_user": True, "email": self.email, "provider": self.provider}


@dataclass(frozen=True)
class AuthResult:
    token: str
    identity: AuthenticatedIdentity
    user: User
    created: bool = False


class IdentityResolver:
    """Orchestrates hashing, codes, provider verification and token issuance."""

    def __init__(
        self,
        users: UserStore,
        codes: VerificationCodeService,
        providers: OAuthProviderRegistry,
        tokens: TokenService,
        hasher: PasswordHasher,
        delivery: CodeDelivery,
    ):
        self.users = users
        self.codes = codes
        self.providers = providers
        self.tokens = tokens
        self.hasher = hasher
        self.delivery = delivery
        self._dummy_hash: str | None = None

    # Password ---------------------------------------------------------------

    def register_password(self, email: str, password: str, role: str) -> AuthResult:
        self._require_self_service_role(role)
        try:
            self.users.get_by_email(email)
        except NotFoundError:
            pass
        else:
            raise ConflictError(f"User with email {email} already exists")

        password_hash = self.hasher.hash(password)
        user = self.users.create(
            email=email,
            role=role,
            provider=PROVIDER_LOCAL,
            password_hash=password_hash,
        )
        logger.info("User %s registered with a password", user.id)
        return self._authenticate(user, created=True)

    def login_password(self, email: str, password: str) -> AuthResult:
        try:
            user = self.users.get_by_email(email)
        except NotFoundError:
            # Spend the same hashing effort as a real check.
            self.hasher.verify(password, self._timing_hash())
            logger.warning("Password login failed for %s", email)
            raise InvalidCredentialsError() from None

        if not user.can_authenticate or not self.hasher.verify(password, user.password_hash):
            logger.warning("Password login failed for %s", email)
            raise InvalidCredentialsError()
        return self._authenticate(user)

    # Email code -------------------------------------------------------------

    def request_email_code(self, email: str) -> datetime:
        """Issue a code for ``email``, deliver it and return its expiry."""

        issued = self.codes.issue(email)
        try:
            self.delivery.send(email, issued.code)
        except DeliveryError as exc:
            logger.error("Verification code delivery to %s failed: %s", email, exc)
            raise
        except OSError as exc:
            logger.error("Verification code delivery to %s failed: %s", email, exc)
            raise DeliveryError(str(exc)) from exc
        return issued.expires_at

    def complete_email_login(
        self, email: str, code: str, role: str | None = None
    ) -> AuthResult | NewIdentityPending:
        if role is not None:
            self._require_self_service_role(role)

        # Without a role the code is only checked, so the caller can come back
        # with a role and the same code.
        record = self.codes.verify(email, code, consume=role is not None)

        try:
            user = self.users.get_by_email(email)
        except NotFoundError:
            if role is None:
                return NewIdentityPending(email=email, provider=PROVIDER_EMAIL)
            return self._create_and_authenticate(
                lambda: self.users.get_by_email(email),
                email=email,
                role=role,
                provider=PROVIDER_EMAIL,
                is_verified=True,
            )

        if role is None:
            # A code admits exactly one login; only a pending signup keeps it open.
            self.codes.consume(record)
        # Roles are fixed once the account exists; a supplied role is ignored.
        return self._authenticate(user)

    # OAuth ------------------------------------------------------------------

    def oauth_login(
        self,
        provider: str,
        id_token: str,
        role: str | None = None,
        timeout: float | None = None,
    ) -> AuthResult | NewIdentityPending:
        if role is not None:
            self._require_self_service_role(role)

        oauth_identity = self.providers.verify(provider, id_token, timeout=timeout)
        subject = oauth_identity.provider_subject_id

        try:
            user = self.users.get_by_provider_identity(provider, subject)
        except NotFoundError:
            if role is None:
                return NewIdentityPending(email=oauth_identity.email, provider=provider)
            return self._create_and_authenticate(
                lambda: self.users.get_by_provider_identity(provider, subject),
                email=oauth_identity.email,
                role=role,
                provider=provider,
                provider_id=subject,
                is_verified=oauth_identity.is_verified,
            )
        return self._authenticate(user)

    # Tokens -----------------------------------------------------------------

    def validate_token(self, token: str) -> AuthenticatedIdentity:
        return self.tokens.validate(token)

    def current_user(self, user_id: str) -> User:
        return self.users.get_by_id(user_id)

    def identity_for(self, user: User) -> AuthenticatedIdentity:
        profile = self.users.get_profile(user.id)
        return AuthenticatedIdentity(
            user_id=user.id,
            email=user.email,
            role=user.role,
            profile=profile.to_dict() if profile else None,
        )

    # Helpers ----------------------------------------------------------------

    def _authenticate(self, user: User, created: bool = False) -> AuthResult:
        token = self.tokens.issue(user.id, user.email, user.role)
        return AuthResult(
            token=token,
            identity=self.identity_for(user),
            user=user,
            created=created,
        )

    def _create_and_authenticate(self, lookup: Callable[[], User], **fields) -> AuthResult:
        try:
            user = self.users.create(**fields)
        except ConflictError:
            # Another request may have created the same identity first.
            try:
                user = lookup()
            except NotFoundError:
                logger.warning(
                    "Email %s is already owned by another account", fields["email"]
                )
                raise ConflictError(
                    f"Email {fields['email']} is already registered"
                ) from None
            logger.warning("Concurrent registration for %s resolved to %s", fields["email"], user.id)
            return self._authenticate(user)

        logger.info("User %s created via %s", user.id, fields["provider"])
        return self._authenticate(user, created=True)

    def _require_self_service_role(self, role: str) -> None:
        if role not in SELF_SERVICE_ROLES:
            raise InvalidInputError(
                "Role must be one of: {}.".format(", ".join(SELF_SERVICE_ROLES))
            )

    def _timing_hash(self) -> str:
        if self._dummy_hash is None:
            self._dummy_hash = self.hasher.hash("not-a-real-password")
        return self._dummy_hash


__all__ = ["AuthResult", "IdentityResolver", "NewIdentityPending"]
