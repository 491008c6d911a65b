"""
Wire helpers: authorization and end-session redirect URLs, redirect-back fragment parsing.
"""
from urllib.parse import quote, unquote, unquote_plus, urlencode

RESPONSE_TYPE = "id_token token"


def _with_query(endpoint: str, params: dict[str, str]) -> str:
    # quote (not quote_plus): spaces go out as %20, like the browser's encodeURI
    sep = "&" if "?" in endpoint else "?"
    return f"{endpoint}{sep}{urlencode(params, quote_via=quote)}"


def build_authorize_url(
    *,
    authorization_endpoint: str,
    client_id: str,
    redirect_uri: str,
    scope: str,
    state: str,
    nonce: str,
) -> str:
    """Implicit-flow authorization request (id_token + access token in the fragment)."""
    params = {
        "response_type": RESPONSE_TYPE,
        "client_id": client_id,
        "scope": scope,
        "redirect_uri": redirect_uri,
        "state": state,
        "nonce": nonce,
    }
    return _with_query(authorization_endpoint, params)


def build_end_session_url(*, end_session_endpoint: str, redirect_uri: str, id_token_hint: str | None) -> str:
    """RP-initiated logout. id_token_hint is left out when there is no id_token to send."""
    params = {"redirect_uri": redirect_uri}
    if id_token_hint:
        params["id_token_hint"] = id_token_hint
    return _with_query(end_session_endpoint, params)


def _decode_value(raw: str) -> str:
    # Values arrive percent-encoded twice; '+' only means space on the outer layer
    return unquote(unquote_plus(raw))


def parse_fragment(fragment: str) -> dict[str, str]:
    """
    Parse '&'-joined key=value pairs from the redirect-back fragment (leading '#' tolerated).
    A pair without '=' yields an empty value; a repeated key keeps the last value.
    """
    fragment = fragment.lstrip("#")
    params: dict[str, str] = {}
    if not fragment:
        return params
    for pair in fragment.split("&"):
        if not pair:
            continue
        key, _, value = pair.partition("=")
        params[unquote(key)] = _decode_value(value)
    return params
