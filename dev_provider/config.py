"""
Development OpenID provider configuration. Paths mirror an OpenAM realm: everything lives under /oauth2.
No secrets in this file; credentials come from env or DB.
"""
import os

# Deployment root; the implicit client is configured with this as its base URL
BASE_URL = os.environ.get("DEV_PROVIDER_BASE_URL", "http://127.0.0.1:9000").rstrip("/")

OAUTH2_PREFIX = "/oauth2"

# Issuer (public identifier) and endpoint root
ISSUER = f"{BASE_URL}{OAUTH2_PREFIX}"

# Scopes the implicit client asks for
ALLOWED_SCOPES = {"openid", "profile", "email", "address", "phone"}

# Response type supported: implicit flow with ID token and access token in the fragment
RESPONSE_TYPE = "id_token token"

# SQLite for development
DATABASE_URL = os.environ.get("DEV_PROVIDER_DATABASE_URL", "sqlite:///./dev_provider.db")

# Access/ID token lifetime (seconds); sent to the client as expires_in
TOKEN_EXPIRES = int(os.environ.get("DEV_PROVIDER_TOKEN_EXPIRES", "3600"))

# RSA private key PEM for signing tokens; generated and saved if missing
SIGNING_KEY_PATH = os.environ.get("DEV_PROVIDER_SIGNING_KEY_PATH", ".dev_provider_signing_key.pem")

# Default dev client for the demo app (served on 4200)
DEFAULT_CLIENT_ID = "demoapp"
DEFAULT_REDIRECT_URIS = ["http://127.0.0.1:4200", "http://localhost:4200"]
