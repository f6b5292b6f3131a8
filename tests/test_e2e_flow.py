"""Full-flow E2E test — register, log in, read, update, delete via the API.

Learn: This test walks through the whole account lifecycle using the
HTTP API alone, with the real token pipeline (no auth overrides).

Run with: uv run pytest tests/test_e2e_flow.py -v
"""

import pytest


@pytest.mark.asyncio
async def test_full_account_lifecycle(client):
    # ── Register ────────────────────────────────────────────
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
    assert "token" in r.json()

    # ── Login ───────────────────────────────────────────────
    r = await client.post("/api/auth", json={"username": "alice", "password": "secret1"})
    assert r.status_code == 200
    token = r.json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    # ── Wrong password → generic failure ────────────────────
    r = await client.post("/api/auth", json={"username": "alice", "password": "wrong"})
    assert r.status_code == 400
    assert r.json() == {"msg": "Invalid Credentials"}

    # ── Current user ────────────────────────────────────────
    r = await client.get("/api/auth", headers=headers)
    assert r.status_code == 200
    me = r.json()
    assert me["username"] == "alice"
    assert me["email"] == "a@x.com"
    assert me["fullName"] == "Alice"
    assert "password" not in me

    r = await client.get("/api/auth")
    assert r.status_code == 401

    # ── Update ──────────────────────────────────────────────
    r = await client.put(
        f"/api/users/{me['id']}",
        json={"fullName": "Alice Liddell", "password": "secret2"},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["fullName"] == "Alice Liddell"

    r = await client.post("/api/auth", json={"username": "alice", "password": "secret2"})
    assert r.status_code == 200

    # ── Delete ──────────────────────────────────────────────
    r = await client.delete(f"/api/users/{me['id']}", headers=headers)
    assert r.status_code == 200

    r = await client.post("/api/auth", json={"username": "alice", "password": "secret2"})
    assert r.status_code == 400

    # Username is free again
    r = await client.post(
        "/api/users",
        json={
            "username": "alice",
            "email": "a2@x.com",
            "fullName": "Alice Again",
            "password": "secret3",
        },
    )
    assert r.status_code == 200
