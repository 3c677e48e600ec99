"""Session tokens: signed, time-bounded JWTs carrying the caller's identity."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Mapping

import jwt

from models.user import ROLES
from utils.clock import utcnow

from .errors import (
    TokenExpiredError,
    TokenIssueError,
    TokenMalformedError,
    TokenSignatureMismatchError,
)

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_ISSUER = "mentori-api"
DEFAULT_TTL = timedelta(hours=24)
REQUIRED_CLAIMS = ("sub", "email", "role", "iat", "exp", "iss")


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """Who is making a request, as vouched for by a token or a fresh login."""

    user_id: str
    email: str
    role: str
    profile: dict | None = field(default=None, compare=False)


@dataclass(frozen=True)
class TokenSettings:
    secret: str
    issuer: str = DEFAULT_ISSUER
    ttl: timedelta = DEFAULT_TTL

    def __post_init__(self):
        if not self.secret:
            raise ValueError("A token signing secret is required.")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TokenSettings":
        return cls(
            secret=config["JWT_SECRET_KEY"],
            issuer=config.get("JWT_ISSUER") or DEFAULT_ISSUER,
            ttl=timedelta(hours=int(config.get("JWT_ACCESS_TOKEN_HOURS", 24))),
        )


@dataclass(frozen=True)
class TokenClaims:
    sub: str
    email: str
    role: str
    iat: int
    exp: int
    iss: str

    @classmethod
    def from_mapping(cls, claims: Mapping[str, Any]) -> "TokenClaims":
        """Validate decoded claims once, failing on any missing or mistyped field."""

        values = {}
        for name in REQUIRED_CLAIMS:
            if name not in claims:
                raise TokenMalformedError(f"Missing claim: {name}")
            values[name] = claims[name]

        for name in ("sub", "email", "role", "iss"):
            if not isinstance(values[name], str) or not values[name]:
                raise TokenMalformedError(f"Claim '{name}' must be a non-empty string")
        for name in ("iat", "exp"):
            if isinstance(values[name], bool) or not isinstance(values[name], int):
                raise TokenMalformedError(f"Claim '{name}' must be an integer timestamp")
        if values["role"] not in ROLES:
            raise TokenMalformedError(f"Unknown role in token: {values['role']}")

        return cls(**values)

    def to_identity(self) -> AuthenticatedIdentity:
        return AuthenticatedIdentity(user_id=self.sub, email=self.email, role=self.role)


class TokenService:
    """Issue and validate HS256 session tokens.

    Tokens use ``sub`` as the identity claim and carry ``type="access"`` and a
    ``jti`` so that Flask-JWT-Extended accepts them on protected routes.
    """

    def __init__(self, settings: TokenSettings, clock: Callable[[], datetime] = utcnow):
        self.settings = settings
        self.clock = clock

    def _now(self) -> int:
        return int(self.clock().replace(tzinfo=UTC).timestamp())

    def issue(self, user_id: str, email: str, role: str) -> str:
        issued_at = self._now()
        payload = {
            "sub": str(user_id),
            "user_id": str(user_id),
            "email": email,
            "role": role,
            "iat": issued_at,
            "exp": issued_at + int(self.settings.ttl.total_seconds()),
            "iss": self.settings.issuer,
            "type": "access",
            "jti": uuid.uuid4().hex,
        }
        try:
            token = jwt.encode(payload, self.settings.secret, algorithm=ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise TokenIssueError(f"Token generation failed: {exc}") from exc
        logger.info("Token issued for user %s", user_id)
        return token

    def validate(self, token: str) -> AuthenticatedIdentity:
        """Return the identity embedded in ``token`` without touching the database."""

        try:
            claims = jwt.decode(
                token,
                self.settings.secret,
                algorithms=[ALGORITHM],
                issuer=self.settings.issuer,
                # Expiry is checked below against the service clock.
                options={
                    "require": ["sub", "exp", "iat", "iss"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except (jwt.InvalidAlgorithmError, jwt.InvalidSignatureError) as exc:
            raise TokenSignatureMismatchError(str(exc)) from exc
        except jwt.PyJWTError as exc:
            raise TokenMalformedError(str(exc)) from exc
        parsed = TokenClaims.from_mapping(claims)
        if parsed.exp <= self._now():
            raise TokenExpiredError()
        return parsed.to_identity()

    def identity_from_claims(self, claims: Mapping[str, Any]) -> AuthenticatedIdentity:
        return TokenClaims.from_mapping(claims).to_identity()


__all__ = [
    "ALGORITHM",
    "AuthenticatedIdentity",
    "TokenClaims",
    "TokenService",
    "TokenSettings",
]
