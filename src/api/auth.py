"""
X-API-KEY check for the /admin routes.

Keys come from the comma-separated ``API_KEYS`` setting. With no keys
configured every request passes as "dev-mode"; production deployments
are expected to set at least one.
"""

import hmac

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from src.config.settings import get_settings

api_key_header = APIKeyHeader(name="X-API-KEY", auto_error=False)


def _matches(candidate: str, keys: list[str]) -> bool:
    return any(hmac.compare_digest(candidate.encode(), key.encode()) for key in keys)


async def verify_api_key(api_key: str | None = Security(api_key_header)) -> str:
    """
    Return the caller's key, or "dev-mode" when auth is disabled.

    Raises:
        HTTPException: 401 when keys are configured and the header is
            missing or matches none of them
    """
    keys = get_settings().api_key_list
    if not keys:
        return "dev-mode"

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-KEY header.",
        )
    if not _matches(api_key, keys):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )
    return api_key
