"""Error taxonomy for the authentication core.

Every error carries an HTTP-agnostic ``status_code``, a short ``title`` and a
``public_message`` that is safe to show to callers. Collaborator failures keep
their detail in ``str(error)`` for server-side logs only.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for errors raised by the authentication core."""

    status_code = 500
    title = "Internal Server Error"
    public_message = "An unexpected error occurred."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)


class InvalidInputError(AuthError):
    status_code = 400
    title = "Bad Request"
    public_message = "The request is invalid."

    def __init__(self, message: str | None = None):
        super().__init__(message)
        if message:
            self.public_message = message


class InvalidCredentialsError(AuthError):
    status_code = 401
    title = "Authentication failed"
    public_message = "Invalid email or password."


class InvalidOrExpiredCodeError(AuthError):
    status_code = 401
    title = "Verification failed"
    public_message = "Invalid or expired verification code."


class VerificationFailedError(AuthError):
    """The identity provider did not vouch for the presented token."""

    status_code = 401
    title = "OAuth verification failed"
    public_message = "The identity provider token could not be verified."


class UnsupportedProviderError(VerificationFailedError):
    status_code = 400
    public_message = "Unsupported identity provider."


class TokenVerificationFailedError(VerificationFailedError):
    pass


class InvalidProviderResponseError(VerificationFailedError):
    public_message = "The identity provider returned an incomplete identity."


class ConflictError(AuthError):
    status_code = 409
    title = "Conflict"
    public_message = "A user with this identity already exists."


class NotFoundError(AuthError):
    status_code = 404
    title = "Not Found"
    public_message = "Resource not found."


class InternalServiceError(AuthError):
    """A collaborator failed; the caller may retry the whole request."""

    status_code = 500
    retriable = True
    title = "Internal Server Error"
    public_message = "The request could not be completed. Please retry."


class StoreError(InternalServiceError):
    pass


class DeliveryError(InternalServiceError):
    public_message = "The verification code could not be delivered. Please retry."


class HashingError(InternalServiceError):
    pass


class TokenIssueError(InternalServiceError):
    pass


class TokenError(AuthError):
    """The presented session token cannot be trusted."""

    status_code = 401
    title = "Unauthorized"
    public_message = "Token is invalid or expired."


class TokenExpiredError(TokenError):
    public_message = "Token has expired."


class TokenMalformedError(TokenError):
    pass


class TokenSignatureMismatchError(TokenError):
    pass


__all__ = [
    "AuthError",
    "ConflictError",
    "DeliveryError",
    "HashingError",
    "InternalServiceError",
    "InvalidCredentialsError",
    "InvalidInputError",
    "InvalidOrExpiredCodeError",
    "InvalidProviderResponseError",
    "NotFoundError",
    "StoreError",
    "TokenError",
    "TokenExpiredError",
    "TokenIssueError",
    "TokenMalformedError",
    "TokenSignatureMismatchError",
    "TokenVerificationFailedError",
    "UnsupportedProviderError",
    "VerificationFailedError",
]
