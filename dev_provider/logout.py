"""
OIDC RP-initiated logout (GET /oauth2/connect/endSession).
Accepts id_token_hint and redirect_uri (post_logout_redirect_uri also accepted); redirects back only to a
URI registered for the client named in the hint. The provider is stateless, so there is nothing else to clear.
"""
import logging

import jwt
from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from dev_provider.database import get_db
from dev_provider.models import Client
from dev_provider.tokens import decode_token

logger = logging.getLogger(__name__)
router = APIRouter()

_LOGGED_OUT_HTML = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Logged out</title></head>
<body>
  <h1>Logged out</h1>
  <p>You are logged out. Close this window or return to the application.</p>
</body>
</html>"""


def _client_id_from_hint(id_token_hint: str | None) -> str | None:
    """aud of a valid id_token_hint. Expired hints are still accepted: logout usually follows expiry."""
    if not id_token_hint or not id_token_hint.strip():
        return None
    try:
        payload = decode_token(id_token_hint.strip(), verify_exp=False)
    except jwt.InvalidTokenError as e:
        logger.debug("Ignoring invalid id_token_hint: %s", e)
        return None
    aud = payload.get("aud")
    if isinstance(aud, list):
        aud = aud[0] if aud else None
    return aud


@router.get("/connect/endSession")
def end_session(
    id_token_hint: str | None = None,
    redirect_uri: str | None = None,
    post_logout_redirect_uri: str | None = None,
    db: Session = Depends(get_db),
):
    client_id = _client_id_from_hint(id_token_hint)
    if not client_id:
        # No valid hint: never redirect to an unverified URI
        return HTMLResponse(_LOGGED_OUT_HTML)

    client = db.query(Client).filter(Client.client_id == client_id).first()
    if not client:
        return HTMLResponse("<h1>Invalid request</h1><p>Unknown client.</p>", status_code=400)

    target = (redirect_uri or post_logout_redirect_uri or "").strip()
    if not target:
        return HTMLResponse(_LOGGED_OUT_HTML)
    if not client.redirect_uri_allowed(target):
        return HTMLResponse(
            "<h1>Invalid request</h1><p>redirect_uri not allowed for this client.</p>",
            status_code=400,
        )
    logger.info("End session for client %s", client_id)
    return RedirectResponse(url=target, status_code=302)
