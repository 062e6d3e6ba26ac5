"""Tests for credential encryption."""

from __future__ import annotations

import pytest
from cryptography.fernet import Fernet, InvalidToken

from neonhub.config import settings
from neonhub.errors import ConfigurationError
from neonhub.services.token_cipher import TokenCipher


class TestTokenCipher:
    def test_ciphertext_hides_token(self):
        cipher = TokenCipher(Fernet.generate_key().decode())
        encrypted = cipher.encrypt("ghp_secret")
        assert "ghp_secret" not in encrypted
        assert cipher.decrypt(encrypted) == "ghp_secret"

    def test_wrong_key_cannot_decrypt(self):
        encrypted = TokenCipher(Fernet.generate_key().decode()).encrypt("ghp_secret")
        with pytest.raises(InvalidToken):
            TokenCipher(Fernet.generate_key().decode()).decrypt(encrypted)

    def test_from_settings_requires_key(self, monkeypatch):
        monkeypatch.setattr(settings, "GITHUB_TOKEN_ENCRYPTION_KEY", "")
        with pytest.raises(ConfigurationError):
            TokenCipher.from_settings()
