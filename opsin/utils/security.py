"""API key enforcement for the service endpoints."""
from __future__ import annotations

from fastapi import Header, HTTPException, status

from ..config import get_settings
from ..diagnostics import mask_secret

__all__ = ["mask_secret", "require_api_key"]


def require_api_key(x_api_key: str | None = Header(None, alias="X-API-Key")) -> None:
    settings = get_settings()
    if not settings.api_key:
        return
    if x_api_key != settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": {"message": "Missing or invalid API key", "code": "unauthorized"}},
        )
