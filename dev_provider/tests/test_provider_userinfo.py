"""
Tests for GET /oauth2/userinfo: bearer validation and scope-dependent claims.
"""
from dev_provider.models import User
from dev_provider.tokens import issue_tokens


def _token_for(db, scope: str) -> str:
    user = db.query(User).filter(User.username == "testuser").first()
    access_token, _ = issue_tokens(user, "demoapp", scope, "nonce")
    return access_token


def test_userinfo_no_bearer_rejected(client, seeded):
    r = client.get("/oauth2/userinfo")
    assert r.status_code in (401, 403)


def test_userinfo_invalid_token_returns_401(client, seeded):
    r = client.get("/oauth2/userinfo", headers={"Authorization": "Bearer invalid.jwt.here"})
    assert r.status_code == 401


def test_userinfo_openid_only_returns_sub(client, seeded):
    r = client.get("/oauth2/userinfo", headers={"Authorization": f"Bearer {_token_for(seeded, 'openid')}"})
    assert r.status_code == 200
    assert set(r.json()) == {"sub"}


def test_userinfo_all_scopes(client, seeded):
    token = _token_for(seeded, "openid profile email address phone")
    r = client.get("/oauth2/userinfo", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    data = r.json()
    assert data["preferred_username"] == "testuser"
    assert data["name"] == "Test User"
    assert data["given_name"] == "Test"
    assert data["family_name"] == "User"
    assert data["email"] == "test@example.com"
    assert data["phone_number"] == "+1 555 0100"
    assert data["address"] == {"formatted": "1 Main St", "country": "US"}


def test_userinfo_email_scope_only(client, seeded):
    token = _token_for(seeded, "openid email")
    data = client.get("/oauth2/userinfo", headers={"Authorization": f"Bearer {token}"}).json()
    assert data["email"] == "test@example.com"
    assert "name" not in data
    assert "address" not in data
