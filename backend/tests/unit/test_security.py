"""
Unit tests for credential encryption and masking.
"""

from prompt_tester.core.security import (
    decrypt_secret,
    encrypt_secret,
    is_encrypted,
    mask_api_key,
)


class TestEncryption:
    def test_encrypted_value_has_four_parts(self):
        stored = encrypt_secret("sk-or-v1-abcdef")

        assert stored.count(":") == 3
        assert is_encrypted(stored)
        assert "sk-or-v1" not in stored

    def test_decrypt_recovers_plaintext(self):
        stored = encrypt_secret("sk-or-v1-abcdef")

        assert decrypt_secret(stored) == "sk-or-v1-abcdef"

    def test_each_encryption_uses_fresh_salt(self):
        assert encrypt_secret("same") != encrypt_secret("same")

    def test_plaintext_passes_through(self):
        assert not is_encrypted("sk-or-v1-legacy")
        assert decrypt_secret("sk-or-v1-legacy") == "sk-or-v1-legacy"

    def test_tampered_value_passes_through(self):
        salt, iv, tag, data = encrypt_secret("secret").split(":")
        tampered = ":".join([salt, iv, tag[::-1], data])

        assert decrypt_secret(tampered) == tampered


class TestMaskApiKey:
    def test_long_key(self):
        assert mask_api_key("sk-or-v1-1234567890abcd") == "sk-or-v1...abcd"

    def test_short_key(self):
        assert mask_api_key("short-key1") == "****key1"

    def test_twelve_chars_is_short(self):
        assert mask_api_key("abcdefgh1234") == "****1234"
