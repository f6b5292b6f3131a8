#!/usr/bin/env python3
"""
userauth Quickstart — the whole account lifecycle in one script.

Register → log in → read yourself → update → delete.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:5000
"""

import httpx

from _common import BASE, check_backend, new_account


def main():
    check_backend()

    # ── Register ──────────────────────────────────────────────────
    print("\n1. Registering...")
    creds, token = new_account()
    print(f"   User: {creds['username']}")

    # ── Log in ────────────────────────────────────────────────────
    print("\n2. Logging in...")
    resp = httpx.post(f"{BASE}/auth", json={
        "username": creds["username"],
        "password": creds["password"],
    })
    assert resp.status_code == 200, f"Failed: {resp.text}"
    token = resp.json()["token"]
    print(f"   Token: {token[:24]}...")

    resp = httpx.post(f"{BASE}/auth", json={
        "username": creds["username"],
        "password": "not-the-password",
    })
    print(f"   Wrong password → {resp.status_code} {resp.json()['msg']}")

    client = httpx.Client(
        base_url=BASE, timeout=10, headers={"Authorization": f"Bearer {token}"}
    )

    # ── Who am I ──────────────────────────────────────────────────
    print("\n3. Fetching current user...")
    me = client.get("/auth").json()
    print(f"   {me['fullName']} <{me['email']}> ({me['id'][:8]}...)")

    # ── Update ────────────────────────────────────────────────────
    print("\n4. Updating full name...")
    resp = client.put(f"/users/{me['id']}", json={"fullName": "Renamed Demo"})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Now: {resp.json()['fullName']}")

    # ── Delete ────────────────────────────────────────────────────
    print("\n5. Deleting account...")
    resp = client.delete(f"/users/{me['id']}")
    print(f"   {resp.json()['msg']}")

    resp = client.get("/auth")
    print(f"   Token after delete → {resp.status_code}")


if __name__ == "__main__":
    main()
