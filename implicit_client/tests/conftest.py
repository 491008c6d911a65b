"""
Pytest configuration for implicit_client: a stubbed provider behind httpx.MockTransport, a controllable clock,
and a factory for a fully wired LoginService. The end-to-end test also imports dev_provider, so point it at
in-memory SQLite and a temp signing key before anything imports it.
"""
import os
import tempfile

os.environ["DEV_PROVIDER_DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault(
    "DEV_PROVIDER_SIGNING_KEY_PATH",
    os.path.join(tempfile.gettempdir(), "dev_provider_test_signing_key.pem"),
)

import httpx
import pytest

from implicit_client.discovery import DiscoveryClient
from implicit_client.flow import LoginService
from implicit_client.navigator import BrowserLocation, RecordingRouter
from implicit_client.session_store import TabSessionStore
from implicit_client.userinfo import UserInfoFetcher

BASE_URL = "https://openam.test/openam"
DISCOVERY_PATH = "/openam/oauth2/.well-known/openid-configuration"
USERINFO_PATH = "/openam/oauth2/userinfo"
APP_HREF = "http://127.0.0.1:4200/"
NOW = 1_700_000_000

DISCOVERY_DOCUMENT = {
    "issuer": "https://openam.test/openam/oauth2",
    "authorization_endpoint": "https://openam.test/openam/oauth2/authorize",
    "userinfo_endpoint": "https://openam.test/openam/oauth2/userinfo",
    "end_session_endpoint": "https://openam.test/openam/oauth2/connect/endSession",
    "jwks_uri": "https://openam.test/openam/oauth2/connect/jwk_uri",
}


class ProviderStub:
    """MockTransport handler standing in for the OpenID provider; records every request."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.discovery_status = 200
        self.discovery_body: object = DISCOVERY_DOCUMENT
        self.valid_tokens = {"tok1": {"sub": "42", "name": "Ada Lovelace", "email": "ada@example.com"}}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == DISCOVERY_PATH:
            return httpx.Response(self.discovery_status, json=self.discovery_body)
        if request.url.path == USERINFO_PATH:
            auth = request.headers.get("Authorization", "")
            token = auth[len("Bearer "):] if auth.startswith("Bearer ") else None
            if token not in self.valid_tokens:
                return httpx.Response(401, json={"error": "invalid_token"})
            return httpx.Response(200, json=self.valid_tokens[token])
        return httpx.Response(404)

    def count(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    @property
    def discovery_requests(self) -> int:
        return self.count(DISCOVERY_PATH)

    @property
    def userinfo_requests(self) -> int:
        return self.count(USERINFO_PATH)


class FakeClock:
    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FixedRandom:
    """Deterministic SecureRandomSource for asserting which value went where."""

    def __init__(self, words):
        self._words = iter(words)

    def random_word(self) -> int:
        return next(self._words)


@pytest.fixture
def provider():
    return ProviderStub()


@pytest.fixture
def transport(provider):
    return httpx.MockTransport(provider)


@pytest.fixture
def clock():
    return FakeClock(NOW)


@pytest.fixture
def make_service(transport, clock):
    """Build (service, location, store, router) for one page load; pass store to simulate a reload."""

    def make(store=None, href=APP_HREF, random_source=None):
        location = BrowserLocation(href)
        store = store if store is not None else TabSessionStore()
        router = RecordingRouter()
        discovery = DiscoveryClient(BASE_URL, transport=transport)
        service = LoginService(
            navigator=location,
            router=router,
            store=store,
            discovery=discovery,
            userinfo=UserInfoFetcher(discovery, transport=transport),
            client_id="demoapp",
            random_source=random_source,
            clock=clock,
        )
        return service, location, store, router

    return make


@pytest.fixture
def fixed_random():
    def make(*words):
        return FixedRandom(words)

    return make
