"""Test doubles and data helpers shared across the test suite."""

from __future__ import annotations

from datetime import datetime, timedelta

from models import db
from models.profile import Profile
from models.user import PROVIDER_LOCAL, User
from services.delivery import CodeDelivery
from services.errors import DeliveryError, TokenVerificationFailedError
from services.oauth import OAuthIdentity, OAuthTokenVerifier
from services.passwords import PasswordHasher

TEST_HASH_METHOD = "pbkdf2:sha256:1000"


class FrozenClock:
    """A callable clock that only moves when told to."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2025, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingDelivery(CodeDelivery):
    """Keep delivered codes in memory instead of sending them."""

    def __init__(self, fail: bool = False):
        self.sent: list[tuple[str, str]] = []
        self.fail = fail

    def send(self, email: str, code: str) -> None:
        if self.fail:
            raise DeliveryError("SMTP unavailable")
        self.sent.append((email, code))

    def last_code(self, email: str) -> str:
        return [code for address, code in self.sent if address == email][-1]


class StubVerifier(OAuthTokenVerifier):
    """Accept a fixed set of tokens and record the timeouts it was given."""

    def __init__(self, identities: dict[str, OAuthIdentity]):
        self.identities = identities
        self.timeouts: list[float | None] = []

    def verify(self, id_token: str, timeout: float | None = None) -> OAuthIdentity:
        self.timeouts.append(timeout)
        try:
            return self.identities[id_token]
        except KeyError:
            raise TokenVerificationFailedError("unknown token") from None


def create_user(
    email: str,
    password: str | None = "Password123",
    role: str = "mentee",
    *,
    provider: str = PROVIDER_LOCAL,
    provider_id: str | None = None,
    verified: bool = False,
) -> User:
    """Persist a user directly, bypassing the identity resolver."""

    user = User(
        email=email,
        role=role,
        provider=provider,
        provider_id=provider_id,
        is_verified=verified,
        password_hash=PasswordHasher(TEST_HASH_METHOD).hash(password) if password else None,
    )
    db.session.add(user)
    db.session.commit()
    return user


def create_profile(user: User, first_name: str = "Ada", last_name: str = "Lovelace") -> Profile:
    profile = Profile(user_id=user.id, first_name=first_name, last_name=last_name)
    db.session.add(profile)
    db.session.commit()
    return profile
