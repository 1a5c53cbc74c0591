"""
Integrations Router — connected marketing platforms.
Tokens are encrypted before they are stored and are never returned.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from dashboard import repository
from dashboard.auth import CallerContext, require_caller
from dashboard.crypto import get_token_cipher
from dashboard.database import Database, get_database
from dashboard.models import Platform
from dashboard.schemas import IntegrationInsert, IntegrationRecord
from dashboard.utils import new_id

logger = logging.getLogger(__name__)
router = APIRouter()


class IntegrationCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    platform: Platform
    name: str = Field(min_length=1, max_length=255)
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    account_id: Optional[str] = Field(None, max_length=255)


@router.get("", response_model=list[IntegrationRecord])
async def list_integrations(
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    return await repository.list_user_integrations(database, caller.user_id)


@router.post("", response_model=IntegrationRecord)
async def create_integration(
    payload: IntegrationCreateRequest,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    cipher = get_token_cipher()
    integration = await repository.create_integration(database, IntegrationInsert(
        id=new_id(),
        user_id=caller.user_id,
        platform=payload.platform,
        name=payload.name,
        access_token=cipher.encrypt(payload.access_token) if payload.access_token else None,
        refresh_token=cipher.encrypt(payload.refresh_token) if payload.refresh_token else None,
        account_id=payload.account_id,
        is_active=True,
    ))
    logger.info(f"Connected {payload.platform.value} integration {integration.id} for user {caller.user_id}")
    return IntegrationRecord.model_validate(integration.model_dump())


@router.get("/{integration_id}", response_model=Optional[IntegrationRecord])
async def get_integration(
    integration_id: str,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    """The integration, or null when it does not exist or is not the caller's."""
    integration = await repository.get_integration(database, integration_id)
    if integration is None or integration.user_id != caller.user_id:
        return None
    return integration
