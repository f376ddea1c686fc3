"""Credential protection."""

from inboxtrack.infrastructure.security.token_vault import TokenVault, token_vault_from_settings

__all__ = [
    "TokenVault",
    "token_vault_from_settings",
]
