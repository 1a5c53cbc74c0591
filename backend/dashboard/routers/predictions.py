"""
Predictions Router — performance and optimal-timing predictions per campaign.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from dashboard import repository
from dashboard.auth import CallerContext, owned_campaign, require_caller, require_owned_campaign
from dashboard.database import Database, get_database
from dashboard.models import PredictionType
from dashboard.schemas import PredictionRecord
from dashboard.services.prediction_service import (
    EngagementSample, HistoricalRecord, PredictionInputError,
    predict_optimal_timing, predict_performance,
)

logger = logging.getLogger(__name__)
router = APIRouter()


# ── Request Models ────────────────────────────────────────────────────

class PerformancePredictionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    campaign_id: str
    historical_data: list[HistoricalRecord] = Field(min_length=1)


class OptimalTimingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    campaign_id: str
    engagement_data: list[EngagementSample] = Field(min_length=1)


# ── Endpoints ─────────────────────────────────────────────────────────

@router.get("", response_model=list[PredictionRecord])
async def list_predictions(
    campaign_id: str = Query(...),
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    if not await owned_campaign(database, caller, campaign_id):
        return []
    return await repository.list_campaign_predictions(database, campaign_id)


@router.get("/latest", response_model=Optional[PredictionRecord])
async def latest_prediction(
    campaign_id: str = Query(...),
    prediction_type: PredictionType = Query(...),
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    """Most recent prediction of one type, or null."""
    if not await owned_campaign(database, caller, campaign_id):
        return None
    return await repository.get_latest_prediction(database, campaign_id, prediction_type)


@router.post("/performance", response_model=PredictionRecord)
async def generate_performance_prediction(
    payload: PerformancePredictionRequest,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    await require_owned_campaign(database, caller, payload.campaign_id)
    try:
        prediction = predict_performance(payload.campaign_id, payload.historical_data)
    except PredictionInputError as e:
        raise HTTPException(status_code=422, detail=str(e))

    await repository.create_prediction(database, prediction)
    return PredictionRecord.model_validate(prediction.model_dump())


@router.post("/optimal-timing", response_model=PredictionRecord)
async def generate_optimal_timing(
    payload: OptimalTimingRequest,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    await require_owned_campaign(database, caller, payload.campaign_id)
    try:
        prediction = predict_optimal_timing(payload.campaign_id, payload.engagement_data)
    except PredictionInputError as e:
        raise HTTPException(status_code=422, detail=str(e))

    await repository.create_prediction(database, prediction)
    return PredictionRecord.model_validate(prediction.model_dump())
