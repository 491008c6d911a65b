"""
Token minting for the implicit flow: RS256 access token and ID token (with nonce and at_hash).
"""
import hashlib
from base64 import urlsafe_b64encode
from datetime import datetime, timedelta, timezone

import jwt

from dev_provider.config import ISSUER, TOKEN_EXPIRES
from dev_provider.keys import get_signing_key
from dev_provider.models import User


def _at_hash(access_token: str) -> str:
    """OIDC at_hash for RS256: base64url of the left half of SHA-256(access_token)."""
    digest = hashlib.sha256(access_token.encode("ascii")).digest()
    return urlsafe_b64encode(digest[: len(digest) // 2]).rstrip(b"=").decode("ascii")


def issue_tokens(user: User, client_id: str, scope: str, nonce: str) -> tuple[str, str]:
    """Return (access_token, id_token) for an authenticated user."""
    private_key, kid = get_signing_key()
    now = datetime.now(timezone.utc)
    exp = int((now + timedelta(seconds=TOKEN_EXPIRES)).timestamp())
    sub = str(user.id)
    headers = {"kid": kid, "typ": "JWT"}

    access_token = jwt.encode(
        {
            "iss": ISSUER,
            "sub": sub,
            "aud": client_id,
            "client_id": client_id,
            "exp": exp,
            "iat": int(now.timestamp()),
            "scope": scope,
        },
        private_key,
        algorithm="RS256",
        headers=headers,
    )
    id_token = jwt.encode(
        {
            "iss": ISSUER,
            "sub": sub,
            "aud": client_id,
            "exp": exp,
            "iat": int(now.timestamp()),
            "nonce": nonce,
            "at_hash": _at_hash(access_token),
        },
        private_key,
        algorithm="RS256",
        headers=headers,
    )
    return access_token, id_token


def decode_token(token: str, *, verify_exp: bool = True) -> dict:
    """Verify signature and issuer of a token we issued. Raises jwt.InvalidTokenError."""
    private_key, _ = get_signing_key()
    return jwt.decode(
        token,
        private_key.public_key(),
        algorithms=["RS256"],
        issuer=ISSUER,
        options={"verify_aud": False, "verify_exp": verify_exp},
    )
