"""
OIDC UserInfo endpoint (GET /oauth2/userinfo). Bearer access token required; claims depend on granted scope.
"""
import logging

import jwt
from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from dev_provider.database import get_db
from dev_provider.models import User
from dev_provider.tokens import decode_token

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=True)


def claims_for(user: User, scope: list[str]) -> dict:
    claims = {"sub": str(user.id)}
    if "profile" in scope:
        claims["preferred_username"] = user.username
        for attr in ("name", "given_name", "family_name"):
            value = getattr(user, attr)
            if value is not None:
                claims[attr] = value
    if "email" in scope and user.email is not None:
        claims["email"] = user.email
    if "phone" in scope and user.phone_number is not None:
        claims["phone_number"] = user.phone_number
    if "address" in scope:
        address = user.get_address()
        if address:
            claims["address"] = address
    return claims


@router.get("/userinfo")
def userinfo(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
):
    """Return claims for the user the access token was issued to."""
    try:
        payload = decode_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        logger.debug("UserInfo token invalid: %s", e)
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": 'Bearer error="invalid_token"'},
        )

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token subject")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return claims_for(user, (payload.get("scope") or "").split())
