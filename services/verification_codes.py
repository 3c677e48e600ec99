"""Short-lived one-time codes proving control of an email address."""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from models.email_verification import EmailVerification
from stores.abstract_store import VerificationStore
from utils.clock import utcnow

from .errors import InvalidOrExpiredCodeError

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
DEFAULT_TTL = timedelta(minutes=10)


def generate_code(length: int = CODE_LENGTH) -> str:
    """Return a code whose digits are drawn independently from a CSPRNG."""

    return "".join(secrets.choice(string.digits) for _ in range(length))


@dataclass(frozen=True)
class IssuedCode:
    code: str
    expires_at: datetime


class VerificationCodeService:
    """Issue and check one-time codes.

    A code moves from issued to consumed, expired or superseded. Issuing a
    new code leaves earlier outstanding codes for the same email valid.
    """

    def __init__(
        self,
        store: VerificationStore,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.ttl = ttl
        self.clock = clock

    def issue(self, email: str) -> IssuedCode:
        code = generate_code()
        expires_at = self.clock() + self.ttl
        self.store.insert(email, code, expires_at)
        logger.info("Verification code issued for %s, expires at %s", email, expires_at)
        return IssuedCode(code=code, expires_at=expires_at)

    def verify(self, email: str, code: str, consume: bool) -> EmailVerification:
        """Return the matching record or raise ``InvalidOrExpiredCodeError``.

        With ``consume`` the record is atomically flipped to used before
        returning; otherwise it stays redeemable.
        """

        record = self.store.find_matching(email, code, self.clock())
        if record is None:
            logger.warning("Invalid or expired verification code for %s", email)
            raise InvalidOrExpiredCodeError()
        if consume:
            self.consume(record)
        return record

    def consume(self, record: EmailVerification) -> None:
        if not self.store.mark_used(record.id):
            raise InvalidOrExpiredCodeError()
