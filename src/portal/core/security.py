"""Service-role key guard for maintenance endpoints."""

import hmac
from typing import Optional

from fastapi import Header, HTTPException, status

from .config import get_settings


def require_service_role(
    x_service_role_key: Optional[str] = Header(None, alias="X-Service-Role-Key"),
) -> None:
    """Reject requests that do not carry the configured service-role key."""

    expected = get_settings().service_role_key
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service-role key is not configured.",
        )
    if not x_service_role_key or not hmac.compare_digest(x_service_role_key, expected):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid service-role key.")
