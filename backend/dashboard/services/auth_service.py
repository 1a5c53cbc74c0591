"""
Auth Service — Session token issue/verification.

Sessions are HS256 JWTs signed with SECRET_KEY. The identity provider issues
them; this service only needs to read them (issue_session_token exists for
the dev script and tests).
"""

import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

from jose import JWTError, jwt

from dashboard.config import get_settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SESSION_EXPIRE_DAYS = 365


def issue_session_token(
    user_id: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    login_method: Optional[str] = None,
    expires_in: timedelta = timedelta(days=SESSION_EXPIRE_DAYS),
) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "name": name,
        "email": email,
        "login_method": login_method,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_session_token(token: str) -> Optional[dict]:
    """Claims of a valid, unexpired token carrying a subject; otherwise None."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug(f"Session token rejected: {e}")
        return None
    if not payload.get("sub"):
        return None
    return payload
