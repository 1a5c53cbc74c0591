"""
Prediction Service — performance and send-time estimates from caller data.

Both estimators are single-pass over the supplied samples and return a ready
``PredictionInsert``; persisting it is the router's job.
"""

import logging
import math
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field

from dashboard.models import PredictionType
from dashboard.schemas import PerformanceInsights, PredictionInsert, TimingInsights
from dashboard.utils import NUMERIC_MAX, fits_numeric, new_id, to_decimal

logger = logging.getLogger(__name__)

PERFORMANCE_CONFIDENCE = 85
OPTIMAL_TIMING_CONFIDENCE = 78
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MAX_INPUT = 1e12


class HistoricalRecord(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    impressions: float = Field(ge=0, le=MAX_INPUT)
    clicks: float = Field(ge=0, le=MAX_INPUT)
    conversions: float = Field(ge=0, le=MAX_INPUT)
    spend: float = Field(ge=0, le=MAX_INPUT)


class EngagementSample(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    hour: int = Field(ge=0, le=23)
    day_of_week: int = Field(ge=0, le=6)  # 0 = Sunday
    engagement_rate: float = Field(ge=0, le=float(NUMERIC_MAX))


class PredictionInputError(ValueError):
    """The supplied samples cannot produce a storable prediction."""


class InsufficientDataError(PredictionInputError):
    """Every supplied record was degenerate."""


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def predict_performance(campaign_id: str, history: Sequence[HistoricalRecord]) -> PredictionInsert:
    """
    Next-period conversions = last impressions × mean CTR × mean conversion rate.

    Records with zero impressions are left out of the CTR mean and records with
    zero clicks are left out of the conversion-rate mean. No usable impressions
    at all is an error; impressions without any clicks give a 0% conversion rate.
    A prediction too large to store is an error as well.
    """
    if not history:
        raise InsufficientDataError("Historical data is empty")

    ctrs = [r.clicks / r.impressions for r in history if r.impressions > 0]
    if not ctrs:
        raise InsufficientDataError("Historical data has no records with impressions")
    conversion_rates = [r.conversions / r.clicks for r in history if r.clicks > 0]

    avg_ctr = sum(ctrs) / len(ctrs)
    avg_conversion_rate = sum(conversion_rates) / len(conversion_rates) if conversion_rates else 0.0
    raw = history[-1].impressions * avg_ctr * avg_conversion_rate
    if not math.isfinite(raw) or not fits_numeric(to_decimal(_round_half_up(raw))):
        raise PredictionInputError("Historical data gives a prediction that is out of range")
    predicted = _round_half_up(raw)

    skipped = sum(1 for r in history if r.impressions <= 0 and r.clicks <= 0)
    if skipped:
        logger.info(f"Performance prediction for {campaign_id}: skipped {skipped} empty record(s)")

    insights = PerformanceInsights(
        avg_ctr=avg_ctr,
        avg_conversion_rate=avg_conversion_rate,
        ctr_samples=len(ctrs),
        conversion_samples=len(conversion_rates),
        records_skipped=skipped,
    )
    return PredictionInsert(
        id=new_id(),
        campaign_id=campaign_id,
        prediction_type=PredictionType.PERFORMANCE,
        predicted_value=to_decimal(predicted),
        confidence=to_decimal(PERFORMANCE_CONFIDENCE),
        insights=insights.model_dump(),
        recommendation=(
            f"Based on historical data (average CTR {avg_ctr * 100:.2f}%, conversion rate "
            f"{avg_conversion_rate * 100:.2f}%), expect about {predicted} conversions next period."
        ),
    )


def predict_optimal_timing(campaign_id: str, samples: Sequence[EngagementSample]) -> PredictionInsert:
    """Pick the sample with the highest engagement rate; the earliest one wins ties."""
    if not samples:
        raise InsufficientDataError("Engagement data is empty")

    optimal = max(samples, key=lambda s: s.engagement_rate)
    insights = TimingInsights(
        optimal_hour=optimal.hour,
        optimal_day=optimal.day_of_week,
        expected_engagement_rate=optimal.engagement_rate,
    )
    return PredictionInsert(
        id=new_id(),
        campaign_id=campaign_id,
        prediction_type=PredictionType.OPTIMAL_TIMING,
        predicted_value=to_decimal(optimal.engagement_rate),
        confidence=to_decimal(OPTIMAL_TIMING_CONFIDENCE),
        insights=insights.model_dump(),
        recommendation=(
            f"Send your campaign on {DAY_NAMES[optimal.day_of_week]} at {optimal.hour}:00 "
            f"for maximum engagement."
        ),
    )
