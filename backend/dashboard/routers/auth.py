"""
Auth Router — whoami and logout. Sign-in happens at the external identity
provider, which sets the session cookie.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response

from dashboard.auth import CallerContext, get_caller
from dashboard.config import get_settings
from dashboard.schemas import UserRecord

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/me", response_model=Optional[UserRecord])
async def me(caller: Optional[CallerContext] = Depends(get_caller)):
    """Current user, or null when there is no valid session."""
    return caller.user if caller else None


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie. Always succeeds."""
    settings = get_settings()
    response.delete_cookie(
        settings.session_cookie_name,
        path="/",
        secure=settings.is_production,
        httponly=True,
        samesite="none" if settings.is_production else "lax",
    )
    return {"success": True}
