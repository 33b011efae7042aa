"""Connection presets for common IMAP providers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from ..core.config import ImapSettings


@dataclass(frozen=True)
class ProviderPreset:
    """Host details for a hosted mailbox provider."""

    host: str
    port: int = 993
    use_ssl: bool = True


EMAIL_PROVIDERS: Mapping[str, ProviderPreset] = {
    "gmail": ProviderPreset(host="imap.gmail.com"),
    "outlook": ProviderPreset(host="outlook.office365.com"),
    "yahoo": ProviderPreset(host="imap.mail.yahoo.com"),
    "icloud": ProviderPreset(host="imap.mail.me.com"),
}


def settings_for_provider(
    provider: str, username: str, password: str, *, base: ImapSettings | None = None
) -> ImapSettings | None:
    """Return IMAP settings for ``provider`` or ``None`` when it is unknown."""
    preset = EMAIL_PROVIDERS.get(provider.lower())
    if preset is None:
        return None
    template = base or ImapSettings()
    return template.model_copy(
        update={
            "host": preset.host,
            "port": preset.port,
            "use_ssl": preset.use_ssl,
            "username": username,
            "app_password": password,
        }
    )


__all__ = ["EMAIL_PROVIDERS", "ProviderPreset", "settings_for_provider"]
