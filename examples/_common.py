"""
Shared helpers for the userauth examples.

Handles the health check and account bootstrap (register + login)
so each example can focus on its own flow.
"""

import sys
import uuid

import httpx

BASE = "http://localhost:5000/api"


def check_backend() -> None:
    """Verify the backend is reachable and healthy."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  USERAUTH_JWT_SECRET=$(userauth gen-secret) userauth serve")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Database: {'✓' if health['database'] == 'ok' else '✗'}")
    if health["status"] != "healthy":
        print(f"\nERROR: Backend is {health['status']}: {health['database']}")
        sys.exit(1)


def new_account() -> tuple[dict, str]:
    """Register a fresh user and return (credentials, token).

    Uses a unique username per run so examples are idempotent.
    """
    run_id = uuid.uuid4().hex[:8]
    creds = {
        "username": f"demo-{run_id}",
        "email": f"demo-{run_id}@example.com",
        "fullName": f"Demo User {run_id}",
        "password": "demo-password-123",
    }
    resp = httpx.post(f"{BASE}/users", json=creds, timeout=10)
    if resp.status_code != 200:
        print(f"ERROR: Registration failed: {resp.status_code} {resp.text}")
        sys.exit(1)
    return creds, resp.json()["token"]
