"""Transport adapters for external mailbox providers."""

from .imap_client import ImapClient, ImapError, check_connection
from .providers import EMAIL_PROVIDERS, ProviderPreset, settings_for_provider

__all__ = [
    "EMAIL_PROVIDERS",
    "ImapClient",
    "ImapError",
    "ProviderPreset",
    "check_connection",
    "settings_for_provider",
]
