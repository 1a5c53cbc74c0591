"""
Recommendation Service — builds recommendation rows and guards their lifecycle.
"""

import logging
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from dashboard.models import Priority, RecommendationStatus, RecommendationType
from dashboard.schemas import RecommendationInsert, RecommendationRecord, RecommendationUpdate
from dashboard.utils import new_id, to_decimal, utcnow

logger = logging.getLogger(__name__)

HEADLINE_EXPECTED_IMPACT = 15
SEGMENTATION_EXPECTED_IMPACT = 22
TOP_SEGMENT_COUNT = 3


class AudienceSegment(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    segment: str = Field(min_length=1)
    size: Optional[int] = Field(None, ge=0)
    engagement_rate: float


class InvalidTransitionError(Exception):
    """Recommendation is already applied or dismissed."""


def build_headline_recommendation(campaign_id: str, current_headline: str, suggestions: str) -> RecommendationInsert:
    return RecommendationInsert(
        id=new_id(),
        campaign_id=campaign_id,
        recommendation_type=RecommendationType.HEADLINE_OPTIMIZATION,
        current_value=current_headline,
        suggested_value=suggestions,
        expected_impact=to_decimal(HEADLINE_EXPECTED_IMPACT),
        priority=Priority.HIGH,
        status=RecommendationStatus.PENDING,
    )


def top_segments(segments: Sequence[AudienceSegment], count: int = TOP_SEGMENT_COUNT) -> list[AudienceSegment]:
    """Highest engagement first; equal rates keep their input order."""
    return sorted(segments, key=lambda s: s.engagement_rate, reverse=True)[:count]


def build_segmentation_recommendation(campaign_id: str, segments: Sequence[AudienceSegment]) -> RecommendationInsert:
    chosen = top_segments(segments)
    return RecommendationInsert(
        id=new_id(),
        campaign_id=campaign_id,
        recommendation_type=RecommendationType.AUDIENCE_SEGMENTATION,
        current_value="Broad audience targeting",
        suggested_value=f"Focus on: {', '.join(s.segment for s in chosen)}",
        expected_impact=to_decimal(SEGMENTATION_EXPECTED_IMPACT),
        priority=Priority.HIGH,
        status=RecommendationStatus.PENDING,
    )


def plan_transition(
    recommendation: RecommendationRecord, target: RecommendationStatus,
) -> Optional[RecommendationUpdate]:
    """
    The update to move a recommendation to ``target``.

    Returns None when it is already there (repeat apply/dismiss is a no-op and
    keeps the original applied_at). Raises InvalidTransitionError when moving
    between applied and dismissed.
    """
    if recommendation.status == target:
        return None
    if recommendation.status != RecommendationStatus.PENDING:
        raise InvalidTransitionError(
            f"Recommendation is already {recommendation.status.value}; cannot mark it {target.value}"
        )
    if target == RecommendationStatus.APPLIED:
        return RecommendationUpdate(status=target, applied_at=utcnow())
    return RecommendationUpdate(status=target)
