"""
Authentication & tenant scoping.

The session token (cookie or ``Authorization: Bearer``) is resolved to a
``CallerContext`` before any protected procedure runs. Owner-scoped queries
always use ``caller.user_id``; request bodies never supply an owner.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from dashboard import repository
from dashboard.config import get_settings
from dashboard.database import Database, get_database
from dashboard.models import UserRole
from dashboard.schemas import CampaignRecord, UserRecord, UserUpsert
from dashboard.services.auth_service import decode_session_token
from dashboard.utils import utcnow

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CallerContext:
    user_id: str
    role: UserRole
    user: UserRecord

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def _session_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(get_settings().session_cookie_name)


async def get_caller(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    database: Database = Depends(get_database),
) -> Optional[CallerContext]:
    """Resolve the session to a caller, or None when there is no valid session."""
    token = _session_token(request, credentials)
    if not token:
        return None
    claims = decode_session_token(token)
    if claims is None:
        return None

    user_id = claims["sub"]
    if await database.acquire() is None:
        # Store is down: trust the signed claims so reads can still degrade
        owner_id = get_settings().owner_id
        role = UserRole.ADMIN if owner_id and user_id == owner_id else UserRole.USER
        user = UserRecord(
            id=user_id,
            name=claims.get("name"),
            email=claims.get("email"),
            login_method=claims.get("login_method"),
            role=role,
        )
        return CallerContext(user_id=user_id, role=role, user=user)

    user = await repository.get_user(database, user_id)
    if user is None:
        # First sighting of this identity: sync it from the token claims
        await repository.upsert_user(
            database,
            UserUpsert(
                id=user_id,
                name=claims.get("name"),
                email=claims.get("email"),
                login_method=claims.get("login_method"),
                last_signed_in=utcnow(),
            ),
            owner_id=get_settings().owner_id,
        )
        user = await repository.get_user(database, user_id)
        if user is None:
            return None
        logger.info(f"Registered user {user_id} from session claims")

    return CallerContext(user_id=user.id, role=user.role, user=user)


async def require_caller(caller: Optional[CallerContext] = Depends(get_caller)) -> CallerContext:
    if caller is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return caller


# ── Tenant scoping ────────────────────────────────────────────────────

async def owned_campaign(database: Database, caller: CallerContext, campaign_id: str) -> Optional[CampaignRecord]:
    """The caller's campaign, or None when it is missing or belongs to someone else."""
    campaign = await repository.get_campaign(database, campaign_id)
    if campaign is None or campaign.user_id != caller.user_id:
        return None
    return campaign


async def require_owned_campaign(database: Database, caller: CallerContext, campaign_id: str) -> CampaignRecord:
    """For mutations: store must be up and the campaign must be the caller's."""
    await repository.ensure_available(database)
    campaign = await owned_campaign(database, caller, campaign_id)
    if campaign is None:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign
