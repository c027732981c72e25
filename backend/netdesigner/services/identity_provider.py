"""
Identity provider token verification (Firebase ID tokens via google-auth).
"""
from typing import Dict, Any

from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from netdesigner.core.config import settings
from netdesigner.core.exceptions import IdentityProviderError
from netdesigner.core.logging_config import logger


def verify_identity_token(token: str) -> Dict[str, Any]:
    """
    Verify a Firebase ID token and return its claims.

    Raises IdentityProviderError when the token is invalid, expired or issued
    for another project.
    """
    if not settings.FIREBASE_PROJECT_ID:
        raise IdentityProviderError("Identity provider is not configured")

    try:
        claims = id_token.verify_firebase_token(
            token,
            google_requests.Request(),
            audience=settings.FIREBASE_PROJECT_ID,
        )
    except (ValueError, GoogleAuthError) as e:
        logger.warning(f"[Identity] Token verification failed: {e}")
        raise IdentityProviderError()

    if not claims or not claims.get("sub"):
        raise IdentityProviderError()

    return {
        "uid": claims["sub"],
        "email": (claims.get("email") or "").lower() or None,
        "email_verified": claims.get("email_verified", False),
        "name": claims.get("name"),
    }
