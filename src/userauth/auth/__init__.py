"""Authentication and authorization.

Learn: One authentication path, kept deliberately small:
1. Users → username/password → bcrypt check → signed JWT
2. Every protected request → Bearer token → verified → user id

There are no refresh tokens and no revocation. A token stays valid
until its expiry, so the TTL is the only lever on session lifetime.
"""
