"""
Well-known endpoints: OpenID Connect discovery and JWKS.
"""
from fastapi import APIRouter

from dev_provider.config import ALLOWED_SCOPES, ISSUER, RESPONSE_TYPE
from dev_provider.keys import get_jwks

router = APIRouter()


@router.get("/.well-known/openid-configuration")
def openid_configuration():
    """OpenID Connect discovery document."""
    return {
        "issuer": ISSUER,
        "authorization_endpoint": f"{ISSUER}/authorize",
        "userinfo_endpoint": f"{ISSUER}/userinfo",
        "end_session_endpoint": f"{ISSUER}/connect/endSession",
        "jwks_uri": f"{ISSUER}/.well-known/jwks.json",
        "response_types_supported": [RESPONSE_TYPE],
        "response_modes_supported": ["fragment"],
        "scopes_supported": sorted(ALLOWED_SCOPES),
        "subject_types_supported": ["public"],
        "id_token_signing_alg_values_supported": ["RS256"],
        "claims_supported": [
            "sub",
            "name",
            "preferred_username",
            "given_name",
            "family_name",
            "email",
            "phone_number",
            "address",
        ],
    }


@router.get("/.well-known/jwks.json")
def jwks_json():
    """JSON Web Key Set for token signature verification."""
    return get_jwks()
