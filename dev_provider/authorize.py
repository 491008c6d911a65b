"""
Implicit-flow authorization endpoint.
GET /oauth2/authorize: validate request, show login. POST /oauth2/authorize: log in (or cancel) and redirect
back with tokens or an error in the URL fragment.
"""
import html
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from dev_provider.config import ALLOWED_SCOPES, OAUTH2_PREFIX, RESPONSE_TYPE, TOKEN_EXPIRES
from dev_provider.database import get_db
from dev_provider.models import Client, User
from dev_provider.seed import verify_password
from dev_provider.tokens import issue_tokens

logger = logging.getLogger(__name__)
router = APIRouter()


def encode_fragment(params: dict[str, str]) -> str:
    """key=value pairs joined by '&'; values percent-encoded twice (what the implicit client expects)."""
    return "&".join(f"{quote(k, safe='')}={quote(quote(v, safe=''), safe='')}" for k, v in params.items())


def _redirect_fragment(redirect_uri: str, params: dict[str, str]) -> RedirectResponse:
    return RedirectResponse(url=f"{redirect_uri}#{encode_fragment(params)}", status_code=302)


def _redirect_error(redirect_uri: str, error: str, error_description: str, state: str | None) -> RedirectResponse:
    params = {"error": error, "error_description": error_description}
    if state:
        params["state"] = state
    return _redirect_fragment(redirect_uri, params)


def _response_type_ok(response_type: str | None) -> bool:
    # Order of the space-separated values is not significant
    return bool(response_type) and sorted(response_type.split()) == sorted(RESPONSE_TYPE.split())


def _validate_scope(scope: str | None) -> tuple[bool, str]:
    """Return (ok, normalized_scope_or_error). openid is mandatory: an ID token is always issued."""
    requested = set(s for s in (scope or "").split() if s)
    if "openid" not in requested:
        return False, "openid scope is required"
    invalid = requested - ALLOWED_SCOPES
    if invalid:
        return False, f"Invalid scope(s): {', '.join(sorted(invalid))}"
    return True, " ".join(sorted(requested))


def _login_form(
    *,
    client_id: str,
    redirect_uri: str,
    scope: str,
    state: str,
    nonce: str,
    username: str = "",
    error: str | None = None,
) -> str:
    def e(s: str | None) -> str:
        return html.escape(s or "")

    error_html = f'<p style="color:red;">{e(error)}</p>' if error else ""
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Log in</title></head>
<body>
  <h1>Log in</h1>
  <p><strong>{e(client_id)}</strong> requests: {e(scope)}</p>
  {error_html}
  <form method="post" action="{OAUTH2_PREFIX}/authorize">
    <input type="hidden" name="response_type" value="{e(RESPONSE_TYPE)}"/>
    <input type="hidden" name="client_id" value="{e(client_id)}"/>
    <input type="hidden" name="redirect_uri" value="{e(redirect_uri)}"/>
    <input type="hidden" name="scope" value="{e(scope)}"/>
    <input type="hidden" name="state" value="{e(state)}"/>
    <input type="hidden" name="nonce" value="{e(nonce)}"/>
    <label>Username: <input type="text" name="username" value="{e(username)}"/></label><br/>
    <label>Password: <input type="password" name="password"/></label><br/>
    <button type="submit" name="action" value="login">Log in</button>
    <button type="submit" name="action" value="cancel">Cancel</button>
  </form>
</body>
</html>"""


def _find_client(db: Session, client_id: str | None, redirect_uri: str | None) -> Client | None:
    if not client_id or not redirect_uri:
        return None
    client = db.query(Client).filter(Client.client_id == client_id).first()
    if client is None or not client.redirect_uri_allowed(redirect_uri):
        return None
    return client


@router.get("/authorize", response_class=HTMLResponse)
def authorize_get(
    response_type: str | None = None,
    client_id: str | None = None,
    redirect_uri: str | None = None,
    scope: str | None = None,
    state: str | None = None,
    nonce: str | None = None,
    db: Session = Depends(get_db),
):
    """
    Validates response_type=id_token token, client_id, redirect_uri (exact match), state and nonce.
    Errors that can safely go back to the client are redirected there; the rest are shown here.
    """
    if not _response_type_ok(response_type):
        return HTMLResponse(
            f"<h1>Invalid request</h1><p>response_type must be '{RESPONSE_TYPE}'.</p>",
            status_code=400,
        )

    if not client_id or not redirect_uri or not state:
        return HTMLResponse(
            "<h1>Invalid request</h1><p>client_id, redirect_uri, and state are required.</p>",
            status_code=400,
        )

    client = db.query(Client).filter(Client.client_id == client_id).first()
    if not client:
        return HTMLResponse("<h1>Invalid request</h1><p>Unknown client_id.</p>", status_code=400)

    if not client.redirect_uri_allowed(redirect_uri):
        return HTMLResponse("<h1>Invalid request</h1><p>redirect_uri not allowed.</p>", status_code=400)

    if not nonce or not nonce.strip():
        return _redirect_error(redirect_uri, "invalid_request", "nonce is required for the implicit flow", state)

    ok, scope_result = _validate_scope(scope)
    if not ok:
        return _redirect_error(redirect_uri, "invalid_scope", scope_result, state)

    return HTMLResponse(
        _login_form(client_id=client_id, redirect_uri=redirect_uri, scope=scope_result, state=state, nonce=nonce)
    )


@router.post("/authorize")
def authorize_post(
    client_id: str = Form(...),
    redirect_uri: str = Form(...),
    state: str = Form(...),
    nonce: str = Form(""),
    response_type: str = Form(RESPONSE_TYPE),
    scope: str = Form(""),
    username: str = Form(""),
    password: str = Form(""),
    action: str = Form("login"),
    db: Session = Depends(get_db),
):
    """
    Log in and redirect to redirect_uri#access_token=...&id_token=...&state=...
    Cancel redirects back with error=access_denied. Bad credentials re-show the form.
    """
    if not _response_type_ok(response_type) or _find_client(db, client_id, redirect_uri) is None:
        return HTMLResponse("<h1>Invalid request</h1>", status_code=400)

    if not nonce.strip():
        return _redirect_error(redirect_uri, "invalid_request", "nonce is required for the implicit flow", state)

    if action == "cancel":
        logger.info("User cancelled login for client %s", client_id)
        return _redirect_error(redirect_uri, "access_denied", "user cancelled", state)

    ok, normalized_scope = _validate_scope(scope)
    if not ok:
        return _redirect_error(redirect_uri, "invalid_scope", normalized_scope, state)

    user = db.query(User).filter(User.username == username).first() if username else None
    if not user or not verify_password(password, user.password_hash):
        logger.info("Login failed for client %s", client_id)
        return HTMLResponse(
            _login_form(
                client_id=client_id,
                redirect_uri=redirect_uri,
                scope=normalized_scope,
                state=state,
                nonce=nonce,
                username=username,
                error="Invalid username or password.",
            ),
            status_code=401,
        )

    access_token, id_token = issue_tokens(user, client_id, normalized_scope, nonce)
    logger.info("Issued implicit-flow tokens for user %s, client %s", user.id, client_id)
    return _redirect_fragment(
        redirect_uri,
        {
            "access_token": access_token,
            "id_token": id_token,
            "token_type": "Bearer",
            "expires_in": str(TOKEN_EXPIRES),
            "scope": normalized_scope,
            "state": state,
        },
    )
