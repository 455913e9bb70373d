"""
Admin authentication for plan operations (quote approval, manual plan changes).

Admins authenticate with the shared X-Admin-Key header. Every admin action
is attributed to an AdminActor so plan history records who made the change.
"""
import hashlib
import hmac
from dataclasses import dataclass
from typing import Optional

from fastapi import Request, HTTPException

from teammove.core.config import settings


@dataclass
class AdminActor:
    """Represents an authenticated admin actor."""
    actor_id: str  # "admin:<hash>"
    actor_display: Optional[str] = None
    auth_mechanism: str = "x_admin_key"


def verify_admin_key(request: Request) -> Optional[AdminActor]:
    """
    Verify the X-Admin-Key header.
    Returns AdminActor if valid, None if not present/invalid.
    """
    expected_key = settings.ADMIN_KEY
    if not expected_key:
        return None

    header_key = request.headers.get("X-Admin-Key", "").strip()
    if not header_key or not hmac.compare_digest(header_key, expected_key):
        return None

    key_hash = hashlib.sha256(header_key.encode()).hexdigest()[:16]
    return AdminActor(
        actor_id=f"admin:{key_hash}",
        actor_display="Admin Key",
    )


def require_admin(request: Request) -> AdminActor:
    """
    FastAPI dependency: Require admin authentication.

    Usage:
        @router.get("/admin/endpoint")
        def admin_endpoint(actor: AdminActor = Depends(require_admin)):
            ...
    """
    if not settings.ADMIN_KEY:
        raise HTTPException(
            status_code=503,
            detail="Admin authentication not configured (set ADMIN_KEY)",
        )

    actor = verify_admin_key(request)
    if not actor:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized: invalid or missing admin credentials",
        )
    return actor
