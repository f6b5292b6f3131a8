"""Auth API tests.

Learn: Tests cover:
1. User registration + duplicate prevention + input validation
2. Login → token, with identical failures for unknown user / wrong password
3. Protected GET /api/auth with and without a valid token
"""

import pytest

from userauth.auth.jwt import TokenService


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_user_returns_token(client):
    r = await client.post(
        "/api/users",
        json={
            "username": "alice",
            "email": "a@x.com",
            "fullName": "Alice",
            "password": "secret1",
        },
    )
    assert r.status_code == 200
    body = r.json()
    assert set(body) == {"token"}
    assert body["token"].count(".") == 2


@pytest.mark.asyncio
async def test_register_duplicate_username(client, register):
    """Can't register the same username twice."""
    await register("bob")

    r = await client.post(
        "/api/users",
        json={
            "username": "bob",
            "email": "other@example.com",
            "fullName": "Other Bob",
            "password": "another1",
        },
    )
    assert r.status_code == 400
    assert r.json() == {"msg": "User already exists"}


@pytest.mark.asyncio
async def test_username_is_case_sensitive(client, register):
    await register("carol")
    r = await client.post(
        "/api/users",
        json={
            "username": "Carol",
            "email": "c2@example.com",
            "fullName": "Carol Two",
            "password": "secret1",
        },
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_register_short_password(client, app, monkeypatch):
    """Password must be at least 6 characters, checked before hashing."""
    calls = []
    hasher = app.state.password_hasher
    monkeypatch.setattr(hasher, "hash_password", lambda pw: calls.append(pw))

    r = await client.post(
        "/api/users",
        json={
            "username": "short",
            "email": "s@example.com",
            "fullName": "Short",
            "password": "12345",
        },
    )
    assert r.status_code == 400
    errors = r.json()["errors"]
    assert [e["field"] for e in errors] == ["password"]
    assert calls == []


@pytest.mark.asyncio
async def test_register_invalid_email(client):
    r = await client.post(
        "/api/users",
        json={
            "username": "dave",
            "email": "not-an-email",
            "fullName": "Dave",
            "password": "secret1",
        },
    )
    assert r.status_code == 400
    assert [e["field"] for e in r.json()["errors"]] == ["email"]


@pytest.mark.asyncio
async def test_register_blank_username(client):
    r = await client.post(
        "/api/users",
        json={
            "username": "   ",
            "email": "e@example.com",
            "fullName": "Blank",
            "password": "secret1",
        },
    )
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "username"


@pytest.mark.asyncio
async def test_register_missing_fields(client):
    r = await client.post("/api/users", json={})
    assert r.status_code == 400
    fields = {e["field"] for e in r.json()["errors"]}
    assert {"username", "email", "password"} <= fields


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success(client, register, app):
    await register("erin", password="my_password")

    r = await client.post(
        "/api/auth", json={"username": "erin", "password": "my_password"}
    )
    assert r.status_code == 200
    token = r.json()["token"]
    assert app.state.token_service.verify(token)


@pytest.mark.asyncio
async def test_login_wrong_password(client, register):
    await register("frank", password="correct_password")

    r = await client.post(
        "/api/auth", json={"username": "frank", "password": "wrong_password"}
    )
    assert r.status_code == 400
    assert r.json() == {"msg": "Invalid Credentials"}


@pytest.mark.asyncio
async def test_login_unknown_user_matches_wrong_password(client, register):
    """Unknown username and wrong password are indistinguishable."""
    await register("grace", password="right_one")

    wrong_pw = await client.post(
        "/api/auth", json={"username": "grace", "password": "wrong_one"}
    )
    unknown = await client.post(
        "/api/auth", json={"username": "nobody", "password": "whatever"}
    )
    assert wrong_pw.status_code == unknown.status_code == 400
    assert wrong_pw.content == unknown.content


@pytest.mark.asyncio
async def test_login_unknown_user_runs_dummy_check(client, app, monkeypatch):
    calls = []
    hasher = app.state.password_hasher
    monkeypatch.setattr(hasher, "dummy_check", lambda pw: calls.append(pw))

    r = await client.post(
        "/api/auth", json={"username": "ghost", "password": "boo123"}
    )
    assert r.status_code == 400
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_login_missing_fields(client):
    r = await client.post("/api/auth", json={"username": "x"})
    assert r.status_code == 400
    assert [e["field"] for e in r.json()["errors"]] == ["password"]


# ═══════════════════════════════════════════════════════════
# Protected endpoint (GET /api/auth)
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_me_with_token(client, register, auth_header):
    body, _ = await register("heidi")
    r = await client.post(
        "/api/auth", json={"username": "heidi", "password": body["password"]}
    )
    token = r.json()["token"]

    r = await client.get("/api/auth", headers=auth_header(token))
    assert r.status_code == 200
    user = r.json()
    assert user["username"] == "heidi"
    assert user["email"] == body["email"]
    assert user["fullName"] == body["fullName"]
    assert "id" in user
    assert "password" not in user
    assert "password_hash" not in user
    assert "passwordHash" not in user


@pytest.mark.asyncio
async def test_me_with_x_auth_token_header(client, register):
    _, token = await register("ivan")
    r = await client.get("/api/auth", headers={"x-auth-token": token})
    assert r.status_code == 200
    assert r.json()["username"] == "ivan"


@pytest.mark.asyncio
async def test_me_without_token(client):
    r = await client.get("/api/auth")
    assert r.status_code == 401
    assert r.json() == {"msg": "Unauthorized"}
    assert r.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_me_with_invalid_token(client, auth_header):
    r = await client.get("/api/auth", headers=auth_header("invalid_token_here"))
    assert r.status_code == 401
    assert r.json() == {"msg": "Unauthorized"}


@pytest.mark.asyncio
async def test_me_with_foreign_secret_token(client, register, auth_header):
    """A token signed with another secret gets the same 401."""
    await register("judy")
    forged = TokenService(secret="some-other-secret-0123456789abcdef").issue(
        "00000000-0000-0000-0000-000000000001"
    )
    r = await client.get("/api/auth", headers=auth_header(forged))
    assert r.status_code == 401
    assert r.json() == {"msg": "Unauthorized"}


@pytest.mark.asyncio
async def test_me_with_expired_token(client, app, settings, register, auth_header):
    await register("ken")
    r = await client.post(
        "/api/auth", json={"username": "ken", "password": "secret1"}
    )
    user_id = app.state.token_service.verify(r.json()["token"])

    stale = TokenService(
        secret=settings.jwt_secret.get_secret_value(), ttl_seconds=10,
        clock=lambda: 1000.0,
    )
    r = await client.get("/api/auth", headers=auth_header(stale.issue(user_id)))
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_with_non_uuid_subject(client, token_service, auth_header):
    token = token_service.issue("not-a-uuid")
    r = await client.get("/api/auth", headers=auth_header(token))
    assert r.status_code == 401
