"""
Campaigns Router — Campaign CRUD and performance metrics.
Every query is scoped to the authenticated caller.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field, field_validator

from dashboard import repository
from dashboard.auth import CallerContext, owned_campaign, require_caller, require_owned_campaign
from dashboard.database import Database, get_database
from dashboard.models import CampaignStatus, CampaignType
from dashboard.schemas import (
    CampaignInsert, CampaignMetricRecord, CampaignRecord, CampaignUpdate, TargetAudience,
)
from dashboard.services.alert_service import evaluate_metric_alerts
from dashboard.services.metric_service import MetricOutOfRangeError, MetricSnapshot, build_metric
from dashboard.utils import new_id, to_decimal

logger = logging.getLogger(__name__)
router = APIRouter()


# ── Request Models ────────────────────────────────────────────────────

class CampaignCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    campaign_type: CampaignType
    integration_id: str = Field(min_length=1)
    budget: Optional[float] = Field(None, ge=0, lt=10**8)
    target_audience: Optional[TargetAudience] = None
    # Accepted but never used: new campaigns always start as drafts
    status: Optional[CampaignStatus] = Field(None, exclude=True)


class CampaignUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[CampaignStatus] = None
    budget: Optional[float] = Field(None, ge=0, lt=10**8)
    target_audience: Optional[TargetAudience] = None

    @field_validator("name", "status")
    @classmethod
    def _not_null(cls, value):
        # Omit the key to leave it unchanged; these columns cannot be cleared
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


# ── Campaigns ─────────────────────────────────────────────────────────

@router.get("", response_model=list[CampaignRecord])
async def list_campaigns(
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    """Caller's campaigns, newest first."""
    return await repository.list_user_campaigns(database, caller.user_id)


@router.post("", response_model=CampaignRecord)
async def create_campaign(
    payload: CampaignCreateRequest,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    """Create a campaign in draft status on one of the caller's integrations."""
    await repository.ensure_available(database)
    integration = await repository.get_integration(database, payload.integration_id)
    if not integration or integration.user_id != caller.user_id:
        raise HTTPException(status_code=404, detail="Integration not found")

    campaign = await repository.create_campaign(database, CampaignInsert(
        id=new_id(),
        user_id=caller.user_id,
        integration_id=integration.id,
        name=payload.name,
        description=payload.description,
        campaign_type=payload.campaign_type,
        status=CampaignStatus.DRAFT,
        budget=to_decimal(payload.budget) if payload.budget is not None else None,
        target_audience=payload.target_audience,
    ))
    logger.info(f"Created campaign {campaign.id} for user {caller.user_id}")
    return CampaignRecord.model_validate(campaign.model_dump())


@router.get("/{campaign_id}", response_model=Optional[CampaignRecord])
async def get_campaign(
    campaign_id: str,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    """The campaign, or null when it does not exist or is not the caller's."""
    return await owned_campaign(database, caller, campaign_id)


@router.patch("/{campaign_id}")
async def update_campaign(
    campaign_id: str,
    payload: CampaignUpdateRequest,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    """Merge the provided fields into the campaign."""
    await require_owned_campaign(database, caller, campaign_id)
    fields = payload.model_dump(exclude_unset=True)
    if fields.get("budget") is not None:
        fields["budget"] = to_decimal(fields["budget"])
    await repository.update_campaign(database, campaign_id, CampaignUpdate(**fields))
    return {"success": True}


# ── Metrics ───────────────────────────────────────────────────────────

@router.get("/{campaign_id}/metrics", response_model=list[CampaignMetricRecord])
async def get_metrics(
    campaign_id: str,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    """Metric snapshots, most recently recorded first."""
    if not await owned_campaign(database, caller, campaign_id):
        return []
    return await repository.list_campaign_metrics(database, campaign_id)


@router.get("/{campaign_id}/metrics/latest", response_model=Optional[CampaignMetricRecord])
async def get_latest_metrics(
    campaign_id: str,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    if not await owned_campaign(database, caller, campaign_id):
        return None
    return await repository.get_latest_campaign_metric(database, campaign_id)


@router.post("/{campaign_id}/metrics", response_model=CampaignMetricRecord)
async def record_metric(
    campaign_id: str,
    payload: MetricSnapshot,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    """Ingest a performance snapshot and raise budget / CTR alerts it triggers."""
    campaign = await require_owned_campaign(database, caller, campaign_id)
    previous = await repository.get_latest_campaign_metric(database, campaign_id)
    spend_before = await repository.sum_campaign_spend(database, campaign_id)
    try:
        snapshot = build_metric(campaign_id, payload)
    except MetricOutOfRangeError as e:
        raise HTTPException(status_code=422, detail=str(e))

    metric = await repository.create_campaign_metric(database, snapshot)
    for alert in evaluate_metric_alerts(campaign, previous, metric, spend_before):
        await repository.create_alert(database, alert)

    return CampaignMetricRecord.model_validate(metric.model_dump())
