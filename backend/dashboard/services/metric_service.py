"""
Metric Service — turns a raw performance snapshot into a metric row.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from dashboard.schemas import CampaignMetricInsert
from dashboard.utils import NUMERIC_MAX, fits_numeric, new_id, safe_ratio, to_decimal, utcnow

MAX_COUNT = 2_147_483_647  # INTEGER column


class MetricSnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    impressions: int = Field(0, ge=0, le=MAX_COUNT)
    clicks: int = Field(0, ge=0, le=MAX_COUNT)
    conversions: int = Field(0, ge=0, le=MAX_COUNT)
    spend: float = Field(0, ge=0, le=float(NUMERIC_MAX))
    revenue: float = Field(0, ge=0, le=float(NUMERIC_MAX))
    engagement_rate: Optional[float] = Field(None, ge=0, le=float(NUMERIC_MAX))
    recorded_at: Optional[datetime] = None


class MetricOutOfRangeError(ValueError):
    """A derived rate does not fit its column."""


def build_metric(campaign_id: str, snapshot: MetricSnapshot) -> CampaignMetricInsert:
    """
    Derived fields:
    - ctr = clicks / impressions × 100 (percent)
    - cpc = spend / clicks
    - roas = revenue / spend
    Each is 0 when its denominator is 0. Raises MetricOutOfRangeError when a
    derived value is too large to store.
    """
    derived = {
        "ctr": to_decimal(safe_ratio(snapshot.clicks, snapshot.impressions) * 100),
        "cpc": to_decimal(safe_ratio(snapshot.spend, snapshot.clicks)),
        "roas": to_decimal(safe_ratio(snapshot.revenue, snapshot.spend)),
    }
    for name, value in derived.items():
        if not fits_numeric(value):
            raise MetricOutOfRangeError(f"Derived {name} ({value}) is out of range")

    return CampaignMetricInsert(
        id=new_id(),
        campaign_id=campaign_id,
        impressions=snapshot.impressions,
        clicks=snapshot.clicks,
        conversions=snapshot.conversions,
        spend=to_decimal(snapshot.spend),
        revenue=to_decimal(snapshot.revenue),
        engagement_rate=to_decimal(snapshot.engagement_rate or 0),
        recorded_at=snapshot.recorded_at or utcnow(),
        **derived,
    )
