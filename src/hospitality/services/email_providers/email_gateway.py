"""Email gateway - picks the delivery provider once, from configuration."""

from __future__ import annotations

from hospitality.config import AppConfig
from hospitality.supabase.client import create_supabase_client

from .base_provider import EmailError, EmailProvider
from .resend_provider import ResendProvider
from .sendgrid_provider import SendGridProvider
from .supabase_provider import SupabaseFunctionProvider

# Registry of available email providers
EMAIL_PROVIDERS = {
    "resend": ResendProvider,
    "sendgrid": SendGridProvider,
    "supabase": SupabaseFunctionProvider,
}


def get_email_provider(provider_name: str, config: AppConfig) -> EmailProvider:
    """
    Get an email provider instance by name.

    Args:
        provider_name: Name of the provider (resend, sendgrid, supabase)
        config: Application configuration holding keys and sender identity

    Raises:
        EmailError: If provider is not supported
    """
    provider_name = (provider_name or "").lower()

    if provider_name not in EMAIL_PROVIDERS:
        supported = ", ".join(EMAIL_PROVIDERS.keys())
        raise EmailError(
            f"Provider email '{provider_name}' non supportato. Provider disponibili: {supported}"
        )

    if provider_name == "supabase":
        client = None
        if config.supabase_url and config.supabase_service_role_key:
            client = create_supabase_client(config)
        return SupabaseFunctionProvider(
            client,
            from_email=config.email_from,
            from_name=config.email_from_name,
            function_name=config.email_function_name,
        )

    provider_class = EMAIL_PROVIDERS[provider_name]
    return provider_class(
        api_key=config.email_api_key,
        from_email=config.email_from,
        from_name=config.email_from_name,
    )
