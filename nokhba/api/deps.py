"""
Shared FastAPI dependencies: caller identity and per-route limits
"""
from fastapi import Depends, Header, HTTPException
from typing import Optional
import logging

from nokhba.services.auth_service import AuthError, UserSession, verify_token
from nokhba.utils.rate_limiter import redeem_limiter

logger = logging.getLogger(__name__)


def get_current_session(
    authorization: Optional[str] = Header(None)
) -> UserSession:
    """Verify the Firebase ID token from Authorization: Bearer <token>"""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Authorization Bearer token")

    token = authorization.split(" ", 1)[1].strip()
    try:
        session = verify_token(token)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))

    return session


def require_admin(session: UserSession = Depends(get_current_session)) -> UserSession:
    if not session.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return session


def limit_redemptions(session: UserSession = Depends(get_current_session)) -> UserSession:
    redeem_limiter.hit(session.user_id)
    return session
