"""
Firebase ID token verification and the explicit per-request user session
"""
import json
import logging
from dataclasses import dataclass
from typing import Optional

import firebase_admin
from firebase_admin import auth as fb_auth
from firebase_admin import credentials as fb_credentials

from nokhba.config import settings

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Token missing, invalid or the provider is not configured"""


@dataclass(frozen=True)
class UserSession:
    """Identity of the caller, passed explicitly into every service"""
    user_id: str
    email: Optional[str] = None
    is_admin: bool = False


def _init_firebase_admin() -> None:
    if firebase_admin._apps:
        return

    if settings.FIREBASE_SERVICE_ACCOUNT_PATH:
        cred = fb_credentials.Certificate(settings.FIREBASE_SERVICE_ACCOUNT_PATH)
    elif settings.FIREBASE_SERVICE_ACCOUNT_JSON:
        cred = fb_credentials.Certificate(json.loads(settings.FIREBASE_SERVICE_ACCOUNT_JSON))
    else:
        raise AuthError(
            "Firebase Admin is not configured. Set FIREBASE_SERVICE_ACCOUNT_PATH or FIREBASE_SERVICE_ACCOUNT_JSON"
        )
    firebase_admin.initialize_app(cred)
    logger.info("Firebase Admin initialized")


def session_from_claims(claims: dict) -> UserSession:
    """Build a UserSession from decoded token claims"""
    email = claims.get("email")
    is_admin = bool(claims.get("admin")) or (
        email is not None and email.lower() in {e.lower() for e in settings.ADMIN_EMAILS}
    )
    return UserSession(user_id=claims["uid"], email=email, is_admin=is_admin)


def verify_token(token: str) -> UserSession:
    """
    Verify a Firebase ID token

    Raises:
        AuthError: token rejected or Firebase unavailable
    """
    try:
        _init_firebase_admin()
        claims = fb_auth.verify_id_token(token)
    except AuthError:
        raise
    except Exception as e:
        logger.warning(f"Token verification failed: {str(e)}")
        raise AuthError(f"Invalid token: {e}")

    return session_from_claims(claims)
