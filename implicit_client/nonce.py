"""
Anti-forgery values for the implicit flow: CSRF state and OIDC nonce.
Both come from the same generator but are always separate calls.
"""
import secrets
from typing import Protocol

# Three 32-bit words -> 96 bits of entropy
_WORDS = 3
_WORD_BITS = 32


class SecureRandomSource(Protocol):
    def random_word(self) -> int:
        """Return a uniformly random unsigned 32-bit integer from a CSPRNG."""
        ...


class SystemRandomSource:
    """OS CSPRNG via the secrets module."""

    def random_word(self) -> int:
        return secrets.randbits(_WORD_BITS)


_default_source = SystemRandomSource()


def generate_nonce(random_source: SecureRandomSource | None = None) -> str:
    """Opaque, URL-safe value: the random words joined as decimal digits."""
    source = random_source or _default_source
    return "".join(str(source.random_word()) for _ in range(_WORDS))
