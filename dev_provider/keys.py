"""
RSA signing key for ID and access tokens. Loaded from file or generated and persisted; no key material in code.
"""
import base64
import logging
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, generate_private_key

logger = logging.getLogger(__name__)

_KEY_BITS = 2048
KEY_ID = "dev-provider-key"

_signing_key: RSAPrivateKey | None = None


def _b64url_uint(value: int) -> str:
    raw = value.to_bytes((value.bit_length() + 7) // 8, "big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def load_or_create_signing_key(path: str) -> RSAPrivateKey:
    p = Path(path)
    if p.exists():
        try:
            return serialization.load_pem_private_key(p.read_bytes(), password=None)
        except (ValueError, TypeError) as e:
            logger.warning("Failed to load signing key from %s: %s; generating new key", path, e)
    key = generate_private_key(public_exponent=65537, key_size=_KEY_BITS)
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    try:
        p.write_bytes(pem)
        logger.info("Generated and saved signing key to %s", path)
    except OSError as e:
        logger.warning("Could not save signing key to %s: %s", path, e)
    return key


def get_signing_key() -> tuple[RSAPrivateKey, str]:
    """Return (private key, kid), loading it on first use."""
    global _signing_key
    if _signing_key is None:
        from dev_provider.config import SIGNING_KEY_PATH

        _signing_key = load_or_create_signing_key(SIGNING_KEY_PATH)
    return _signing_key, KEY_ID


def get_public_key_for_kid(kid: str):
    key, current_kid = get_signing_key()
    return key.public_key() if kid == current_kid else None


def get_jwks() -> dict:
    key, kid = get_signing_key()
    numbers = key.public_key().public_numbers()
    return {
        "keys": [
            {
                "kty": "RSA",
                "kid": kid,
                "alg": "RS256",
                "use": "sig",
                "n": _b64url_uint(numbers.n),
                "e": _b64url_uint(numbers.e),
            }
        ]
    }
