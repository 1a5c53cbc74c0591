"""
Alert Service — rule-based alerts raised by metric ingestion and new recommendations.

Alert Types produced here:
  - budget_threshold: cumulative spend crossed 80% (warning) or 100% (critical) of budget
  - performance_drop: CTR fell by 25% or more against the previous snapshot
  - recommendation_available: a new recommendation is waiting for review
"""

import logging
from decimal import Decimal
from typing import Optional

from dashboard.models import AlertType, Severity
from dashboard.schemas import (
    AlertInsert, CampaignMetricInsert, CampaignMetricRecord, CampaignRecord, RecommendationInsert,
)
from dashboard.utils import new_id

logger = logging.getLogger(__name__)

BUDGET_THRESHOLDS = [
    (Decimal("1.00"), Severity.CRITICAL),
    (Decimal("0.80"), Severity.WARNING),
]
CTR_DROP_RATIO = Decimal("0.25")


def campaign_url(campaign_id: str) -> str:
    return f"/campaigns/{campaign_id}"


def _title(text: str) -> str:
    return text if len(text) <= 255 else text[:254] + "…"


def budget_alert(
    campaign: CampaignRecord, spend_before: Decimal, spend_after: Decimal,
) -> Optional[AlertInsert]:
    """Alert only on the snapshot whose spend crosses a threshold, highest crossed first."""
    if not campaign.budget or campaign.budget <= 0:
        return None
    for ratio, severity in BUDGET_THRESHOLDS:
        limit = campaign.budget * ratio
        if spend_before < limit <= spend_after:
            pct = int(ratio * 100)
            return AlertInsert(
                id=new_id(),
                user_id=campaign.user_id,
                campaign_id=campaign.id,
                alert_type=AlertType.BUDGET_THRESHOLD,
                title=_title(f"{campaign.name} reached {pct}% of budget"),
                message=f"Spend is {spend_after:.2f} against a budget of {campaign.budget:.2f}.",
                severity=severity,
                action_url=campaign_url(campaign.id),
            )
    return None


def performance_drop_alert(
    campaign: CampaignRecord,
    previous: Optional[CampaignMetricRecord],
    current: CampaignMetricInsert,
) -> Optional[AlertInsert]:
    if previous is None or not previous.ctr or previous.ctr <= 0:
        return None
    drop = (previous.ctr - current.ctr) / previous.ctr
    if drop < CTR_DROP_RATIO:
        return None
    return AlertInsert(
        id=new_id(),
        user_id=campaign.user_id,
        campaign_id=campaign.id,
        alert_type=AlertType.PERFORMANCE_DROP,
        title=_title(f"CTR dropped {drop * 100:.0f}% on {campaign.name}"),
        message=f"Click-through rate fell from {previous.ctr:.2f}% to {current.ctr:.2f}%.",
        severity=Severity.WARNING,
        action_url=campaign_url(campaign.id),
    )


def evaluate_metric_alerts(
    campaign: CampaignRecord,
    previous: Optional[CampaignMetricRecord],
    current: CampaignMetricInsert,
    spend_before: Decimal,
) -> list[AlertInsert]:
    alerts = []
    spend_after = spend_before + current.spend
    for alert in (
        budget_alert(campaign, spend_before, spend_after),
        performance_drop_alert(campaign, previous, current),
    ):
        if alert is not None:
            alerts.append(alert)
    if alerts:
        logger.info(f"Campaign {campaign.id}: raised {len(alerts)} metric alert(s)")
    return alerts


def recommendation_alert(campaign: CampaignRecord, recommendation: RecommendationInsert) -> AlertInsert:
    label = recommendation.recommendation_type.value.replace("_", " ")
    return AlertInsert(
        id=new_id(),
        user_id=campaign.user_id,
        campaign_id=campaign.id,
        alert_type=AlertType.RECOMMENDATION_AVAILABLE,
        title=_title(f"New {label} recommendation for {campaign.name}"),
        message=recommendation.suggested_value,
        severity=Severity.INFO,
        action_url=campaign_url(campaign.id),
    )
