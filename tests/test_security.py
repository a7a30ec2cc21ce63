"""
Email validation, sanitization and secret decryption.
"""
import pytest

from api.errors import ConfigError
from api.security import (
    decrypt_value,
    encrypt_value,
    is_valid_email,
    looks_encrypted,
    maybe_decrypt,
    normalize_email,
    sanitize_text,
)

KEY = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"
OTHER_KEY = "ff" * 32


# ═══════════════════════════════════════════════
# 1. EMAIL
# ═══════════════════════════════════════════════

class TestEmail:
    def test_normalize_lowercases_and_trims(self):
        assert normalize_email("  User@Example.COM \n") == "user@example.com"

    def test_normalize_empty(self):
        assert normalize_email("") == ""
        assert normalize_email(None) == ""

    @pytest.mark.parametrize("email", ["user@example.com", "a.b+tag@sub.example.co.kr"])
    def test_valid(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", ["", "not-an-email", "a@b", "a b@example.com", "@example.com", "user@@example.com", "a\x00b@example.com"])
    def test_invalid(self, email):
        assert not is_valid_email(email)

    def test_too_long(self):
        assert not is_valid_email("a" * 250 + "@example.com")


# ═══════════════════════════════════════════════
# 2. SANITIZATION
# ═══════════════════════════════════════════════

class TestSanitize:
    def test_strips_control_chars(self):
        assert sanitize_text("founders\x00_register") == "founders_register"

    def test_enforces_length(self):
        assert len(sanitize_text("a" * 100, max_length=64)) == 64


# ═══════════════════════════════════════════════
# 3. SECRET DECRYPTION
# ═══════════════════════════════════════════════

class TestDecryption:
    def test_decrypts_encrypted_value(self):
        encoded = encrypt_value("https://abc.supabase.co", KEY)
        assert looks_encrypted(encoded)
        assert decrypt_value(encoded, KEY) == "https://abc.supabase.co"

    def test_wrong_key_is_rejected(self):
        encoded = encrypt_value("secret", KEY)
        with pytest.raises(ConfigError):
            decrypt_value(encoded, OTHER_KEY)

    def test_tampered_ciphertext_is_rejected(self):
        iv, tag, ct = encrypt_value("secret", KEY).split(":")
        flipped = ("0" if ct[0] != "0" else "1") + ct[1:]
        with pytest.raises(ConfigError):
            decrypt_value(f"{iv}:{tag}:{flipped}", KEY)

    def test_bad_key_length(self):
        with pytest.raises(ConfigError):
            encrypt_value("secret", "abcd")

    def test_plain_values_pass_through(self):
        assert maybe_decrypt("https://abc.supabase.co", KEY) == "https://abc.supabase.co"
        assert maybe_decrypt("eyJhbGciOiJIUzI1NiJ9.payload.sig", KEY) == "eyJhbGciOiJIUzI1NiJ9.payload.sig"

    def test_no_key_leaves_value_alone(self):
        encoded = encrypt_value("secret", KEY)
        assert maybe_decrypt(encoded, "") == encoded
