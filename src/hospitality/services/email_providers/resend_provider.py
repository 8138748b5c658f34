"""Resend email provider implementation."""

from __future__ import annotations

import requests

from hospitality.logging_config import get_logger

from .base_provider import EmailError, EmailMessage, EmailProvider

logger = get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class ResendProvider(EmailProvider):
    """Resend HTTP API."""

    name = "resend"

    def __init__(self, api_key: str, from_email: str, from_name: str, timeout: int = 30):
        super().__init__(from_email, from_name)
        self.api_key = api_key
        self.timeout = timeout

    def validate_configuration(self) -> bool:
        if not self.api_key:
            raise EmailError("Resend non è configurato. Impostare RESEND_API_KEY.")
        return True

    def send(self, message: EmailMessage) -> bool:
        try:
            response = requests.post(
                RESEND_API_URL,
                json={
                    "from": self.sender,
                    "to": [message.recipient],
                    "subject": message.subject,
                    "html": message.html,
                },
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            logger.error(f"[EMAIL] Resend timeout sending to {message.recipient}")
            return False
        except requests.exceptions.ConnectionError:
            logger.error("[EMAIL] Could not connect to Resend")
            return False
        except requests.exceptions.RequestException as e:
            logger.error(f"[EMAIL] Resend error: {e}")
            return False

        if not response.ok:
            logger.warning(
                f"[EMAIL] Resend rejected message to {message.recipient}: HTTP {response.status_code}"
            )
        return response.ok
