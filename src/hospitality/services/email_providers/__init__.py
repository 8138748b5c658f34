"""Email delivery providers."""

from .base_provider import EmailError, EmailMessage, EmailProvider
from .email_gateway import EMAIL_PROVIDERS, get_email_provider
from .resend_provider import ResendProvider
from .sendgrid_provider import SendGridProvider
from .supabase_provider import SupabaseFunctionProvider

__all__ = [
    "EMAIL_PROVIDERS",
    "EmailError",
    "EmailMessage",
    "EmailProvider",
    "ResendProvider",
    "SendGridProvider",
    "SupabaseFunctionProvider",
    "get_email_provider",
]
