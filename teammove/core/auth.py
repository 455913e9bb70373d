"""
Auth utilities for the TEAMMOVE API.

Tokens are issued by the account service; this module only verifies them
and extracts the company the caller acts for.
Falls back to the X-Company-Id header, honoured only when ENV is
development or test.
"""
from fastapi import Header, HTTPException, Request
from typing import Optional
from teammove.core.config import settings
import jwt
import logging

logger = logging.getLogger("teammove")

# Environments where the unauthenticated X-Company-Id header is trusted
HEADER_AUTH_ENVS = ("development", "test")


def verify_company_jwt(token: str) -> Optional[str]:
    """
    Verify a company JWT and extract the company id.

    Args:
        token: JWT from Authorization header (Bearer {token})

    Returns:
        company_id from the 'companyId' claim, else 'sub'.
        None when no JWT_SECRET is configured.

    Raises:
        HTTPException 401: Invalid or expired token
    """
    if not settings.JWT_SECRET:
        logger.debug("No JWT_SECRET configured, skipping JWT validation")
        return None

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_signature": True, "verify_exp": True},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid token: {e}")
        raise HTTPException(status_code=401, detail="Invalid token")

    company_id = payload.get("companyId") or payload.get("sub")
    if not company_id:
        raise HTTPException(status_code=401, detail="Token has no company claim")
    return str(company_id)


async def get_current_company_id(
    request: Request,
    x_company_id: Optional[str] = Header(None, description="Development/test company ID"),
) -> str:
    """
    Extract the caller's company ID.

    Priority:
    1. Bearer JWT from Authorization header
    2. X-Company-Id header (development and test only)
    3. 401 Unauthorized
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        company_id = verify_company_jwt(auth_header[7:].strip())
        if company_id:
            return company_id

    if x_company_id:
        if settings.ENV in HEADER_AUTH_ENVS:
            return x_company_id
        logger.warning(
            "[auth] X-Company-Id header refused outside development",
            extra={"env": settings.ENV},
        )
        raise HTTPException(status_code=401, detail="Bearer token required")

    raise HTTPException(
        status_code=401,
        detail="Missing Authorization (Bearer JWT) or X-Company-Id header",
    )
