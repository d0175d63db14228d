"""
Shared dependencies for API endpoints.

Includes:
- Bearer token extraction for voter and candidate tokens
- Admin JWT capability check
"""

from typing import Annotated, Any, Optional

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.config import settings
from core.exceptions import MissingTokenError
from core.security import decode_token

logger = structlog.get_logger(__name__)

# Tokens may also arrive in the JSON body, so a missing header is not an error here
security_optional = HTTPBearer(auto_error=False)


# =============================================================================
# Voter / Candidate Tokens
# =============================================================================


def bearer_token(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security_optional)],
) -> Optional[str]:
    """Token from the Authorization header, if any."""
    if credentials is None:
        return None
    token = credentials.credentials.strip()
    return token or None


def require_token(header_token: Optional[str], body_token: Optional[str] = None) -> str:
    """
    Pick the presented token: Authorization header first, then body field.

    Raises:
        MissingTokenError: neither source carries a token.
    """
    for candidate in (header_token, body_token):
        if candidate and candidate.strip():
            return candidate.strip()
    raise MissingTokenError()


# =============================================================================
# Admin Authentication (JWT-based)
# =============================================================================


async def get_current_admin(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security_optional)],
) -> dict[str, Any]:
    """
    Validate the admin JWT and return its payload.

    Raises:
        HTTPException: 401 if the token is missing or invalid, 403 if its
            role is not an admin role.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials, expected_type="admin")
    if payload is None or payload.get("sub") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("role") not in settings.admin_roles_set:
        logger.warning("non_admin_access_attempt", subject=payload.get("sub"), role=payload.get("role"))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )

    return payload
