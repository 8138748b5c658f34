"""Base email provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class EmailError(Exception):
    """Raised when an email provider is missing or misconfigured."""


@dataclass
class EmailMessage:
    """One outgoing email to a single recipient."""

    recipient: str
    subject: str
    html: str
    recipient_name: str | None = None


class EmailProvider(ABC):
    """Abstract base class for email delivery providers."""

    name = "base"

    def __init__(self, from_email: str, from_name: str):
        self.from_email = from_email
        self.from_name = from_name

    @property
    def sender(self) -> str:
        return f"{self.from_name} <{self.from_email}>"

    @abstractmethod
    def send(self, message: EmailMessage) -> bool:
        """
        Deliver one message.

        Returns:
            True when the provider accepted the message, False otherwise.
            Transport errors are logged and reported as False.
        """

    @abstractmethod
    def validate_configuration(self) -> bool:
        """
        Check that the provider can be used.

        Raises:
            EmailError: If configuration is invalid
        """
