"""
Implicit client configuration. Values from env, defaults match the demo OpenAM realm.
"""
import os

# OpenAM deployment base; discovery lives at {BASE_URL}/oauth2/.well-known/openid-configuration
BASE_URL = os.environ.get("OAUTH_BASE_URL", "http://openam.example.com/openam").rstrip("/")

# Our client_id (must be registered at the provider)
CLIENT_ID = os.environ.get("OAUTH_CLIENT_ID", "demoapp")

# Requested scopes, space separated
DEFAULT_SCOPE = os.environ.get("OAUTH_SCOPE", "openid profile email address phone")

DISCOVERY_PATH = "/oauth2/.well-known/openid-configuration"

# No timeout at this layer unless explicitly configured
_timeout = os.environ.get("OAUTH_HTTP_TIMEOUT", "").strip()
HTTP_TIMEOUT = float(_timeout) if _timeout else None
