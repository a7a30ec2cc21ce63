"""
Security utilities: email validation, input sanitization, secret decryption.
"""
import os
import re

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from api.errors import ConfigError

EMAIL_RE = re.compile(r"^[^\s@\x00-\x1f\x7f]+@[^\s@\x00-\x1f\x7f]+\.[^\s@\x00-\x1f\x7f]+$")
MAX_EMAIL_LENGTH = 254

# iv:authTag:ciphertext, all hex
_ENCRYPTED_RE = re.compile(r"^((?:[0-9a-fA-F]{2})+):([0-9a-fA-F]{32}):((?:[0-9a-fA-F]{2})*)$")


# ── Email ──

def normalize_email(email: str) -> str:
    """Lowercase and trim. Applied before any comparison or storage."""
    if not email:
        return ""
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    if not email or len(email) > MAX_EMAIL_LENGTH:
        return False
    return bool(EMAIL_RE.match(email))


# ── Input sanitization ──

def sanitize_text(text: str, max_length: int = 5000) -> str:
    """Strip control characters and enforce length limit."""
    if not text:
        return ""
    text = text[:max_length]
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f]", "", text)
    return text.strip()


# ── Secret decryption (AES-256-GCM) ──

def _parse_key(key_hex: str) -> bytes:
    try:
        key = bytes.fromhex(key_hex.strip())
    except ValueError:
        raise ConfigError("ENV_DECRYPTION_KEY must be hex encoded")
    if len(key) != 32:
        raise ConfigError("ENV_DECRYPTION_KEY must be 32 bytes (64 hex characters)")
    return key


def looks_encrypted(value: str) -> bool:
    return bool(value) and bool(_ENCRYPTED_RE.match(value.strip()))


def encrypt_value(plaintext: str, key_hex: str, iv: bytes = None) -> str:
    """Encode a secret as iv:authTag:ciphertext for storage in .env files.

    Operator helper: the server only ever decrypts. Produce a value with

        from api.security import encrypt_value
        encrypt_value("https://xyz.supabase.co", os.environ["ENV_DECRYPTION_KEY"])

    and paste the result into .env. A fixed iv is accepted for tests only.
    """
    key = _parse_key(key_hex)
    iv = iv or os.urandom(12)
    sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    ciphertext, tag = sealed[:-16], sealed[-16:]
    return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"


def decrypt_value(encoded: str, key_hex: str) -> str:
    """Decrypt an iv:authTag:ciphertext value. Raises ConfigError on tampering or a wrong key."""
    m = _ENCRYPTED_RE.match((encoded or "").strip())
    if not m:
        raise ConfigError("Encrypted value must look like iv:authTag:ciphertext (hex)")
    iv, tag, ciphertext = (bytes.fromhex(part) for part in m.groups())
    key = _parse_key(key_hex)
    try:
        plain = AESGCM(key).decrypt(iv, ciphertext + tag, None)
    except InvalidTag:
        raise ConfigError("Encrypted value failed authentication (wrong key or corrupted data)")
    return plain.decode("utf-8")


def maybe_decrypt(value: str, key_hex: str) -> str:
    """Decrypt value if a key is configured and the value is in encrypted form."""
    if not key_hex or not looks_encrypted(value):
        return value
    return decrypt_value(value, key_hex)
