"""
HMAC-signed JWT authorization for the status dashboard API.

The dashboard accepts ``Authorization: Bearer <jwt>`` where the token is
signed HS256 with a shared secret.  Without a secret the header is
omitted entirely.
"""

from __future__ import annotations

from typing import Optional

import jwt

CLAIM_PREFERRED_USERNAME = "preferred_username"
CLAIM_GROUPS = "groups"
JWT_ALGORITHM = "HS256"


def build_token(
    secret: str,
    preferred_username: Optional[str] = None,
    group: Optional[str] = None,
) -> str:
    """Sign the dashboard claims with ``secret``."""
    claims: dict[str, object] = {}
    if preferred_username:
        claims[CLAIM_PREFERRED_USERNAME] = preferred_username
    if group:
        claims[CLAIM_GROUPS] = [group]
    return jwt.encode(claims, secret, algorithm=JWT_ALGORITHM)


def build_auth_headers(
    secret: Optional[str],
    preferred_username: Optional[str] = None,
    group: Optional[str] = None,
) -> dict[str, str]:
    """Return the Authorization header, or no headers when ``secret`` is unset."""
    if not secret:
        return {}
    token = build_token(secret, preferred_username, group)
    return {"Authorization": f"Bearer {token}"}
