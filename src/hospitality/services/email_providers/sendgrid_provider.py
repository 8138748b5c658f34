"""SendGrid email provider implementation."""

from __future__ import annotations

import requests

from hospitality.logging_config import get_logger

from .base_provider import EmailError, EmailMessage, EmailProvider

logger = get_logger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridProvider(EmailProvider):
    """SendGrid v3 mail send API."""

    name = "sendgrid"

    def __init__(self, api_key: str, from_email: str, from_name: str, timeout: int = 30):
        super().__init__(from_email, from_name)
        self.api_key = api_key
        self.timeout = timeout

    def validate_configuration(self) -> bool:
        if not self.api_key:
            raise EmailError("SendGrid non è configurato. Impostare EMAIL_API_KEY.")
        return True

    def send(self, message: EmailMessage) -> bool:
        payload = {
            "personalizations": [
                {
                    "to": [{"email": message.recipient, "name": message.recipient_name}],
                    "subject": message.subject,
                }
            ],
            "from": {"email": self.from_email, "name": self.from_name},
            "content": [{"type": "text/html", "value": message.html}],
        }
        try:
            response = requests.post(
                SENDGRID_API_URL,
                json=payload,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            logger.error(f"[EMAIL] SendGrid timeout sending to {message.recipient}")
            return False
        except requests.exceptions.ConnectionError:
            logger.error("[EMAIL] Could not connect to SendGrid")
            return False
        except requests.exceptions.RequestException as e:
            logger.error(f"[EMAIL] SendGrid error: {e}")
            return False

        if not response.ok:
            logger.warning(
                f"[EMAIL] SendGrid rejected message to {message.recipient}: "
                f"HTTP {response.status_code}"
            )
        return response.ok
