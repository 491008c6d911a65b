"""
End-to-end: the implicit client against the development provider over httpx.ASGITransport.
The "browser" is played by the test: it follows each navigation the client dispatches.
"""
import json
from urllib.parse import parse_qs, urlsplit

import httpx
import jwt
import pytest

from dev_provider.database import SessionLocal, init_db
from dev_provider.main import app as provider_app
from dev_provider.models import User
from dev_provider.seed import ensure_client, hash_password
from implicit_client.bootstrap import create_app
from implicit_client.models import CallbackOutcome, Session
from implicit_client.session_store import ROUTE_STORAGE_KEY, SESSION_STORAGE_KEY, STATE_STORAGE_KEY

PROVIDER_URL = "http://127.0.0.1:9000"
APP_ORIGIN = "http://127.0.0.1:4200"


@pytest.fixture
def seeded():
    init_db()
    db = SessionLocal()
    try:
        if db.query(User).filter(User.username == "ada").first() is None:
            db.add(
                User(
                    username="ada",
                    password_hash=hash_password("analytical"),
                    name="Ada Lovelace",
                    email="ada@example.com",
                    phone_number="+44 20 0000 0000",
                    address=json.dumps({"locality": "London", "country": "UK"}),
                )
            )
            db.commit()
        ensure_client(db, "demoapp", [APP_ORIGIN])
        yield db
    finally:
        db.close()


@pytest.fixture
def transport():
    return httpx.ASGITransport(app=provider_app)


async def _log_in(transport, authorize_url: str, *, action: str = "login") -> str:
    """Play the browser at the provider: load the login page, submit it, return the redirect Location."""
    params = {k: v[0] for k, v in parse_qs(urlsplit(authorize_url).query).items()}
    async with httpx.AsyncClient(transport=transport, base_url=PROVIDER_URL) as browser:
        page = await browser.get(authorize_url)
        assert page.status_code == 200
        assert "Log in" in page.text
        r = await browser.post(
            "/oauth2/authorize",
            data={**params, "username": "ada", "password": "analytical", "action": action},
        )
    assert r.status_code == 302
    return r.headers["location"]


@pytest.mark.asyncio
async def test_login_profile_logout_round_trip(seeded, transport):
    first_load = create_app(f"{APP_ORIGIN}/profile", transport=transport, base_url=PROVIDER_URL)
    assert await first_load.start() is False
    assert await first_load.guard.can_activate(["profile"]) is False
    authorize_url = first_load.location.last_navigation
    nonce = parse_qs(urlsplit(authorize_url).query)["nonce"][0]

    callback_url = await _log_in(transport, authorize_url)
    assert callback_url.startswith(f"{APP_ORIGIN}#")

    # Redirect back lands in the same tab: same session storage, new page load
    callback_load = create_app(callback_url, store=first_load.store, transport=transport, base_url=PROVIDER_URL)
    callback_load.home.on_init()
    assert callback_load.home.error is None
    assert callback_load.location.hash == ""
    assert callback_load.router.routes == [["profile"]]
    assert STATE_STORAGE_KEY not in callback_load.store
    assert ROUTE_STORAGE_KEY not in callback_load.store

    session = callback_load.login_service.session
    assert session.token_type == "Bearer"
    assert session.expires_in == "3600"
    assert session.scope == "address email openid phone profile"
    assert callback_load.login_service.is_token_valid()
    claims = jwt.decode(session.id_token, options={"verify_signature": False})
    assert claims["nonce"] == nonce
    assert claims["aud"] == "demoapp"

    await callback_load.home.sub.wait()
    info = callback_load.home.user_info
    assert info.name == "Ada Lovelace"
    assert info.preferred_username == "ada"
    assert info.email == "ada@example.com"
    assert info.phone_number == "+44 20 0000 0000"
    assert info.address == {"locality": "London", "country": "UK"}

    # Reload: session restored from storage and confirmed by the provider
    reload = create_app(f"{APP_ORIGIN}/profile", store=callback_load.store, transport=transport, base_url=PROVIDER_URL)
    assert await reload.start() is True
    assert await reload.guard.can_activate(["profile"]) is True

    await reload.home.logout()
    assert SESSION_STORAGE_KEY not in reload.store
    end_session_url = reload.location.last_navigation
    assert f"id_token_hint={session.id_token}" in end_session_url
    async with httpx.AsyncClient(transport=transport, base_url=PROVIDER_URL) as browser:
        r = await browser.get(end_session_url)
    assert r.status_code == 302
    assert r.headers["location"] == APP_ORIGIN


@pytest.mark.asyncio
async def test_cancelled_login_surfaces_error(seeded, transport):
    page = create_app(f"{APP_ORIGIN}/", transport=transport, base_url=PROVIDER_URL)
    await page.home.login()
    callback_url = await _log_in(transport, page.location.last_navigation, action="cancel")

    callback_load = create_app(callback_url, store=page.store, transport=transport, base_url=PROVIDER_URL)
    result = callback_load.login_service.process_hash()
    assert result.outcome is CallbackOutcome.FAILED
    assert str(result.error) == "user cancelled"
    assert callback_load.login_service.session is None


@pytest.mark.asyncio
async def test_forged_callback_is_rejected(seeded, transport):
    victim = create_app(f"{APP_ORIGIN}/", transport=transport, base_url=PROVIDER_URL)
    await victim.home.login()

    attacker = create_app(f"{APP_ORIGIN}/", transport=transport, base_url=PROVIDER_URL)
    await attacker.home.login()
    forged_callback = await _log_in(transport, attacker.location.last_navigation)

    landing = create_app(forged_callback, store=victim.store, transport=transport, base_url=PROVIDER_URL)
    landing.home.on_init()
    assert landing.home.error.startswith("Invalid state")
    assert landing.login_service.session is None
    assert SESSION_STORAGE_KEY not in landing.store


@pytest.mark.asyncio
async def test_expired_session_then_guarded_login_lands_authenticated(seeded, transport):
    first_load = create_app(f"{APP_ORIGIN}/", transport=transport, base_url=PROVIDER_URL)
    await first_load.home.login()
    callback_load = create_app(
        await _log_in(transport, first_load.location.last_navigation),
        store=first_load.store,
        transport=transport,
        base_url=PROVIDER_URL,
    )
    callback_load.home.on_init()
    stale = callback_load.login_service.session

    # The stored session outlives its token
    expired = Session(
        access_token="expired",
        id_token=stale.id_token,
        token_type=stale.token_type,
        expires_in=stale.expires_in,
        scope=stale.scope,
        issued_at=stale.issued_at - 7200,
    )
    store = callback_load.store
    store.set(SESSION_STORAGE_KEY, expired.to_json())

    reload = create_app(f"{APP_ORIGIN}/profile", store=store, transport=transport, base_url=PROVIDER_URL)
    assert await reload.start() is False
    assert await reload.guard.can_activate(["profile"]) is False
    callback_url = await _log_in(transport, reload.location.last_navigation)

    # The expired record is still in storage when the redirect-back page starts up
    assert Session.from_json(store.get(SESSION_STORAGE_KEY)).access_token == "expired"
    landing = create_app(callback_url, store=store, transport=transport, base_url=PROVIDER_URL)
    assert await landing.start() is False
    landing.home.on_init()

    assert landing.home.error is None
    assert landing.router.routes == [["profile"]]
    session = landing.login_service.session
    assert session is not None
    assert session.access_token != "expired"
    assert Session.from_json(store.get(SESSION_STORAGE_KEY)).access_token == session.access_token
    await landing.home.sub.wait()
    assert landing.home.user_info.preferred_username == "ada"
