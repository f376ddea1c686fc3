"""Exchange a stored refresh token for a short-lived Gmail access token."""

from __future__ import annotations

import httpx
from loguru import logger

from inboxtrack.domain.errors import GatewayError

TOKEN_URL = "https://oauth2.googleapis.com/token"


async def refresh_access_token(
    client: httpx.AsyncClient,
    refresh_token: str,
    client_id: str,
    client_secret: str,
) -> str:
    """Return a fresh access token or raise GatewayError."""
    try:
        response = await client.post(
            TOKEN_URL,
            data={
                "client_id": client_id,
                "client_secret": client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
        )
    except httpx.HTTPError as e:
        raise GatewayError(f"OAuth token endpoint unreachable: {e}") from e

    if response.status_code != 200:
        # Body may echo request details; keep it short and never log the token
        logger.error(f"OAuth token refresh failed: HTTP {response.status_code}")
        raise GatewayError(f"OAuth token refresh failed: HTTP {response.status_code}: {response.text[:200]}")

    access_token = response.json().get("access_token")
    if not access_token:
        raise GatewayError("OAuth token response missing access_token")
    return access_token
