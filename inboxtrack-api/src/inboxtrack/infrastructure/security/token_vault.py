"""Symmetric encryption of mailbox refresh tokens at rest."""

from __future__ import annotations

import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from inboxtrack.domain.errors import CryptoError
from inboxtrack.domain.models import EncryptedCredential

KEY_LENGTH = 32  # AES-256
IV_LENGTH = 12  # GCM nonce


class TokenVault:
    """AES-256-GCM vault. Every encryption draws a fresh random IV."""

    def __init__(self, key: bytes | str):
        raw = key.encode("utf-8") if isinstance(key, str) else key
        if len(raw) != KEY_LENGTH:
            raise CryptoError(f"Encryption key must be exactly {KEY_LENGTH} bytes, got {len(raw)}")
        self._aead = AESGCM(raw)

    def encrypt(self, plaintext: str) -> EncryptedCredential:
        iv = os.urandom(IV_LENGTH)
        ciphertext = self._aead.encrypt(iv, plaintext.encode("utf-8"), None)
        return EncryptedCredential(iv=iv.hex(), ciphertext=ciphertext.hex())

    def decrypt(self, credential: EncryptedCredential) -> str:
        try:
            iv = bytes.fromhex(credential.iv)
            ciphertext = bytes.fromhex(credential.ciphertext)
        except (ValueError, binascii.Error) as e:
            raise CryptoError(f"Malformed credential blob: {e}") from e

        if len(iv) != IV_LENGTH:
            raise CryptoError(f"Credential IV must be {IV_LENGTH} bytes, got {len(iv)}")

        try:
            plaintext = self._aead.decrypt(iv, ciphertext, None)
        except InvalidTag as e:
            raise CryptoError("Credential failed authentication (tampered or wrong key)") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CryptoError("Decrypted credential is not valid UTF-8") from e


def token_vault_from_settings(settings=None) -> TokenVault:
    """Build the vault from configuration; raises CryptoError on a bad key."""
    if settings is None:
        from inboxtrack.infrastructure.settings import get_settings
        settings = get_settings()
    return TokenVault(settings.encryption_key.get_secret_value())
