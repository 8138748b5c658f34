"""Email delivery through a Supabase edge function."""

from __future__ import annotations

from supabase import Client

from hospitality.logging_config import get_logger

from .base_provider import EmailError, EmailMessage, EmailProvider

logger = get_logger(__name__)


class SupabaseFunctionProvider(EmailProvider):
    """
    Invokes the ``send-email`` edge function (name configurable) with
    ``{to, subject, html, from}``.
    """

    name = "supabase"

    def __init__(
        self,
        client: Client | None,
        from_email: str,
        from_name: str,
        function_name: str = "send-email",
    ):
        super().__init__(from_email, from_name)
        self.client = client
        self.function_name = function_name

    def validate_configuration(self) -> bool:
        if self.client is None:
            raise EmailError("Supabase non è configurato. Impostare SUPABASE_URL e la service role key.")
        return True

    def send(self, message: EmailMessage) -> bool:
        if self.client is None:
            logger.error("[EMAIL] Supabase client not configured")
            return False
        try:
            self.client.functions.invoke(
                self.function_name,
                invoke_options={
                    "body": {
                        "to": message.recipient,
                        "subject": message.subject,
                        "html": message.html,
                        "from": self.from_email,
                    }
                },
            )
        except Exception as e:
            # Function errors surface as exceptions from the client.
            logger.error(f"[EMAIL] Supabase edge function error: {e}")
            return False
        return True
