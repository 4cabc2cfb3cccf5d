"""
Exception types raised by the bot's outbound adapters.
"""
from typing import Optional


class ProBotError(Exception):
    """Base class for all ProBot errors."""


class SmsDeliveryError(ProBotError):
    """An outbound SMS could not be delivered."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code


class EmailDeliveryError(ProBotError):
    """A transactional email could not be sent."""
