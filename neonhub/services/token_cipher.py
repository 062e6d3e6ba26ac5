"""Fernet encryption for GitHub credentials at rest."""

from __future__ import annotations

from cryptography.fernet import Fernet

from neonhub.config import settings
from neonhub.errors import ConfigurationError


class TokenCipher:
    def __init__(self, key: str):
        self._fernet = Fernet(key.encode() if isinstance(key, str) else key)

    def encrypt(self, token: str) -> str:
        return self._fernet.encrypt(token.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        return self._fernet.decrypt(ciphertext.encode()).decode()

    @classmethod
    def from_settings(cls) -> TokenCipher:
        if not settings.GITHUB_TOKEN_ENCRYPTION_KEY:
            raise ConfigurationError("GITHUB_TOKEN_ENCRYPTION_KEY is not configured")
        return cls(settings.GITHUB_TOKEN_ENCRYPTION_KEY)
