"""Delivery of one-time codes to their recipients."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class CodeDelivery(ABC):
    """Interface for sending a verification code to an email address.

    Implementations raise ``DeliveryError`` when the code could not be sent.
    """

    @abstractmethod
    def send(self, email: str, code: str) -> None:
        """Deliver ``code`` to ``email``."""


class LogCodeDelivery(CodeDelivery):
    """Write codes to the application log instead of sending mail.

    Used until a mail transport is configured. With ``reveal_codes`` off the
    code itself is withheld from the log.
    """

    def __init__(self, reveal_codes: bool = False, ttl_minutes: int = 10):
        self.reveal_codes = reveal_codes
        self.ttl_minutes = ttl_minutes

    def send(self, email: str, code: str) -> None:
        if self.reveal_codes:
            logger.info(
                "[VERIFICATION] Code for %s: %s (expires in %d minutes)",
                email,
                code,
                self.ttl_minutes,
            )
        else:
            logger.info("[VERIFICATION] Code generated for %s", email)
