"""Verification of identity-provider tokens (Google, Apple).

Each provider is a ``OAuthTokenVerifier`` registered under its provider tag in
an ``OAuthProviderRegistry``. Adding a provider means registering another
verifier; the identity resolver only talks to the registry.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping

import httpx
import jwt

from models.user import PROVIDER_APPLE, PROVIDER_GOOGLE

from .errors import (
    InvalidProviderResponseError,
    TokenVerificationFailedError,
    UnsupportedProviderError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
APPLE_ISSUER = "https://appleid.apple.com"
APPLE_JWKS_URL = "https://appleid.apple.com/auth/keys"


@dataclass(frozen=True)
class OAuthIdentity:
    """The provider's assertion about who holds the token."""

    email: str
    provider_subject_id: str
    is_verified: bool
    display_name: str = ""


def _effective_timeout(configured: float, requested: float | None) -> float:
    if requested is None:
        return configured
    return min(configured, requested)


def _required_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InvalidProviderResponseError(f"Provider response is missing '{key}'")
    return value


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


class OAuthTokenVerifier(ABC):
    """Provider-neutral token verification interface."""

    @abstractmethod
    def verify(self, id_token: str, timeout: float | None = None) -> OAuthIdentity:
        """Verify ``id_token`` and return the normalized identity.

        ``timeout`` is the caller's remaining budget in seconds; verifiers never
        wait longer than the smaller of it and their own configured timeout.
        """


class GoogleTokenVerifier(OAuthTokenVerifier):
    """Ask Google's tokeninfo endpoint to introspect an ID token."""

    def __init__(
        self,
        tokeninfo_url: str = GOOGLE_TOKENINFO_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client_id: str | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.tokeninfo_url = tokeninfo_url
        self.timeout = timeout
        self.client_id = client_id or None
        self.http_client = http_client

    def _fetch(self, id_token: str, timeout: float) -> httpx.Response:
        params = {"id_token": id_token}
        if self.http_client is not None:
            return self.http_client.get(self.tokeninfo_url, params=params, timeout=timeout)
        with httpx.Client(timeout=timeout) as client:
            return client.get(self.tokeninfo_url, params=params)

    def verify(self, id_token: str, timeout: float | None = None) -> OAuthIdentity:
        budget = _effective_timeout(self.timeout, timeout)
        if budget <= 0:
            raise TokenVerificationFailedError("Request deadline exhausted before token introspection")

        try:
            response = self._fetch(id_token, budget)
        except httpx.HTTPError as exc:
            raise TokenVerificationFailedError(f"Failed to verify token: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise TokenVerificationFailedError(
                f"Google rejected token ({response.status_code}): {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise InvalidProviderResponseError("Failed to decode tokeninfo response") from exc
        if not isinstance(payload, dict):
            raise InvalidProviderResponseError("Tokeninfo response is not an object")

        if self.client_id and payload.get("aud") != self.client_id:
            raise TokenVerificationFailedError("Token was issued for a different client")

        return OAuthIdentity(
            email=_required_str(payload, "email"),
            provider_subject_id=_required_str(payload, "sub"),
            is_verified=_as_bool(payload.get("email_verified")),
            display_name=payload.get("name") or "",
        )


class UnverifiedClaimsDecoder:
    """Read token claims without checking the signature.

    Only suitable for development: anyone can mint such a token. Configure a
    ``JWKSClaimsDecoder`` for real deployments.
    """

    def decode(self, id_token: str, timeout: float | None = None) -> dict[str, Any]:
        return jwt.decode(id_token, options={"verify_signature": False})


class JWKSClaimsDecoder:
    """Verify token signatures against a provider's published JSON Web Key Set."""

    def __init__(
        self,
        jwks_url: str,
        audience: str,
        issuer: str,
        timeout: float = DEFAULT_TIMEOUT,
        algorithms: tuple[str, ...] = ("RS256",),
    ):
        self.audience = audience
        self.issuer = issuer
        self.timeout = timeout
        self.algorithms = list(algorithms)
        self.jwks_client = jwt.PyJWKClient(jwks_url, timeout=timeout)

    def decode(self, id_token: str, timeout: float | None = None) -> dict[str, Any]:
        # The key fetch is the only network call; it gets the caller's budget.
        self.jwks_client.timeout = _effective_timeout(self.timeout, timeout)
        signing_key = self.jwks_client.get_signing_key_from_jwt(id_token)
        return jwt.decode(
            id_token,
            signing_key.key,
            algorithms=self.algorithms,
            audience=self.audience,
            issuer=self.issuer,
        )


class AppleTokenVerifier(OAuthTokenVerifier):
    """Decode an Apple ID token with a pluggable claims decoder."""

    def __init__(
        self,
        decoder: UnverifiedClaimsDecoder | JWKSClaimsDecoder | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.decoder = decoder or UnverifiedClaimsDecoder()
        self.timeout = timeout

    def verify(self, id_token: str, timeout: float | None = None) -> OAuthIdentity:
        budget = _effective_timeout(self.timeout, timeout)
        if budget <= 0:
            raise TokenVerificationFailedError("Request deadline exhausted before token verification")

        try:
            claims = self.decoder.decode(id_token, budget)
        except jwt.PyJWTError as exc:
            raise TokenVerificationFailedError(f"Failed to parse token: {exc}") from exc

        return OAuthIdentity(
            email=_required_str(claims, "email"),
            provider_subject_id=_required_str(claims, "sub"),
            # Apple sends email_verified as the string "true" or "false".
            is_verified=claims.get("email_verified") == "true",
        )


class OAuthProviderRegistry:
    """Map provider tags to their verifiers."""

    def __init__(self):
        self._verifiers: dict[str, OAuthTokenVerifier] = {}

    def register(self, provider: str, verifier: OAuthTokenVerifier) -> None:
        self._verifiers[provider] = verifier

    @property
    def providers(self) -> tuple[str, ...]:
        return tuple(sorted(self._verifiers))

    def get(self, provider: str) -> OAuthTokenVerifier:
        try:
            return self._verifiers[provider]
        except KeyError:
            raise UnsupportedProviderError(f"Unsupported provider: {provider}") from None

    def verify(self, provider: str, id_token: str, timeout: float | None = None) -> OAuthIdentity:
        verifier = self.get(provider)
        try:
            return verifier.verify(id_token, timeout=timeout)
        except (TokenVerificationFailedError, InvalidProviderResponseError) as exc:
            logger.warning("%s token verification failed: %s", provider, exc)
            raise


def build_provider_registry(
    config: Mapping[str, Any], http_client: httpx.Client | None = None
) -> OAuthProviderRegistry:
    """Build the registry of supported providers from application config."""

    timeout = float(config.get("OAUTH_HTTP_TIMEOUT", DEFAULT_TIMEOUT))
    registry = OAuthProviderRegistry()
    registry.register(
        PROVIDER_GOOGLE,
        GoogleTokenVerifier(
            tokeninfo_url=config.get("GOOGLE_TOKENINFO_URL") or GOOGLE_TOKENINFO_URL,
            timeout=timeout,
            client_id=config.get("GOOGLE_CLIENT_ID"),
            http_client=http_client,
        ),
    )

    apple_client_id = config.get("APPLE_CLIENT_ID")
    if apple_client_id:
        decoder = JWKSClaimsDecoder(
            jwks_url=config.get("APPLE_JWKS_URL") or APPLE_JWKS_URL,
            audience=apple_client_id,
            issuer=config.get("APPLE_ISSUER") or APPLE_ISSUER,
            timeout=timeout,
        )
    else:
        logger.warning("APPLE_CLIENT_ID not set; Apple token signatures are not verified")
        decoder = UnverifiedClaimsDecoder()
    registry.register(PROVIDER_APPLE, AppleTokenVerifier(decoder, timeout=timeout))
    return registry


__all__ = [
    "AppleTokenVerifier",
    "GoogleTokenVerifier",
    "JWKSClaimsDecoder",
    "OAuthIdentity",
    "OAuthProviderRegistry",
    "OAuthTokenVerifier",
    "UnverifiedClaimsDecoder",
    "build_provider_registry",
]
