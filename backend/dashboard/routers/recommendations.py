"""
Recommendations Router — generated suggestions and their apply / dismiss lifecycle.

Generation endpoints also raise a ``recommendation_available`` alert for the
campaign owner.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from dashboard import repository
from dashboard.auth import CallerContext, owned_campaign, require_caller, require_owned_campaign
from dashboard.database import Database, get_database
from dashboard.models import RecommendationStatus
from dashboard.schemas import CampaignRecord, RecommendationInsert, RecommendationRecord
from dashboard.services.alert_service import recommendation_alert
from dashboard.services.llm_service import LLMService, get_llm_service
from dashboard.services.recommendation_service import (
    AudienceSegment, build_headline_recommendation, build_segmentation_recommendation, plan_transition,
)
from dashboard.utils import safe_error_detail

logger = logging.getLogger(__name__)
router = APIRouter()


# ── Request Models ────────────────────────────────────────────────────

class HeadlineOptimizationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    campaign_id: str
    current_headline: str = Field(min_length=1, max_length=1000)


class AudienceSegmentationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    campaign_id: str
    audience_data: list[AudienceSegment] = Field(min_length=1)


# ── Helpers ───────────────────────────────────────────────────────────

async def _store_with_alert(
    database: Database, campaign: CampaignRecord, recommendation: RecommendationInsert,
) -> RecommendationRecord:
    await repository.create_recommendation(database, recommendation)
    await repository.create_alert(database, recommendation_alert(campaign, recommendation))
    return RecommendationRecord.model_validate(recommendation.model_dump())


async def _transition(
    database: Database, caller: CallerContext, recommendation_id: str, target: RecommendationStatus,
) -> dict:
    await repository.ensure_available(database)
    recommendation = await repository.get_recommendation(database, recommendation_id)
    if recommendation is None or not await owned_campaign(database, caller, recommendation.campaign_id):
        raise HTTPException(status_code=404, detail="Recommendation not found")

    # InvalidTransitionError is mapped to 409 by the app
    update = plan_transition(recommendation, target)
    if update is not None:
        await repository.update_recommendation(database, recommendation_id, update)
        logger.info(f"Recommendation {recommendation_id} marked {target.value}")
    return {"success": True}


# ── Endpoints ─────────────────────────────────────────────────────────

@router.get("", response_model=list[RecommendationRecord])
async def list_recommendations(
    campaign_id: str = Query(...),
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    if not await owned_campaign(database, caller, campaign_id):
        return []
    return await repository.list_campaign_recommendations(database, campaign_id)


@router.get("/pending", response_model=list[RecommendationRecord])
async def pending_recommendations(
    campaign_id: str = Query(...),
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    """Pending recommendations, high priority first."""
    if not await owned_campaign(database, caller, campaign_id):
        return []
    return await repository.list_pending_recommendations(database, campaign_id)


@router.post("/headline-optimization", response_model=RecommendationRecord)
async def generate_headline_optimization(
    payload: HeadlineOptimizationRequest,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
    llm: LLMService = Depends(get_llm_service),
):
    campaign = await require_owned_campaign(database, caller, payload.campaign_id)
    try:
        suggestions = await llm.generate_headline_alternatives(payload.current_headline)
    except Exception as e:
        raise HTTPException(
            status_code=502,
            detail=safe_error_detail(e, "Headline generation failed. Please try again."),
        )

    recommendation = build_headline_recommendation(campaign.id, payload.current_headline, suggestions)
    return await _store_with_alert(database, campaign, recommendation)


@router.post("/audience-segmentation", response_model=RecommendationRecord)
async def generate_audience_segmentation(
    payload: AudienceSegmentationRequest,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    campaign = await require_owned_campaign(database, caller, payload.campaign_id)
    recommendation = build_segmentation_recommendation(campaign.id, payload.audience_data)
    return await _store_with_alert(database, campaign, recommendation)


@router.post("/{recommendation_id}/apply")
async def apply_recommendation(
    recommendation_id: str,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    return await _transition(database, caller, recommendation_id, RecommendationStatus.APPLIED)


@router.post("/{recommendation_id}/dismiss")
async def dismiss_recommendation(
    recommendation_id: str,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    return await _transition(database, caller, recommendation_id, RecommendationStatus.DISMISSED)
