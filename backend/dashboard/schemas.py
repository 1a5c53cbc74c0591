"""
Row shapes for every entity.

``<Entity>Insert`` is what a create call needs (optional fields may be absent);
``<Entity>Record`` is the full row as read. Enum fields are closed, so an
unknown value fails when the shape is built instead of reaching the store.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from dashboard.models import (
    AlertType, CampaignStatus, CampaignType, Platform, PredictionType,
    Priority, RecommendationStatus, RecommendationType, Severity, UserRole,
)


# ── Structured JSON fields ─────────────────────────────────────────────

class TargetAudience(BaseModel):
    model_config = ConfigDict(extra="forbid")

    segments: list[str] = []
    locations: list[str] = []
    interests: list[str] = []
    min_age: Optional[int] = Field(None, ge=0, le=120)
    max_age: Optional[int] = Field(None, ge=0, le=120)


class PerformanceInsights(BaseModel):
    avg_ctr: float
    avg_conversion_rate: float
    ctr_samples: int  # records with impressions
    conversion_samples: int  # records with clicks
    records_skipped: int = 0  # records in neither mean


class TimingInsights(BaseModel):
    optimal_hour: int
    optimal_day: int
    expected_engagement_rate: float


# ── Users ─────────────────────────────────────────────────────────────

class UserUpsert(BaseModel):
    """Only fields explicitly passed are merged on conflict (see model_fields_set)."""
    id: str = Field(min_length=1, max_length=64)
    name: Optional[str] = None
    email: Optional[str] = None
    login_method: Optional[str] = None
    role: Optional[UserRole] = None
    last_signed_in: Optional[datetime] = None


class UserRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    login_method: Optional[str] = None
    role: UserRole
    created_at: Optional[datetime] = None
    last_signed_in: Optional[datetime] = None


# ── Integrations ──────────────────────────────────────────────────────

class IntegrationInsert(BaseModel):
    id: str
    user_id: str
    platform: Platform
    name: str = Field(min_length=1, max_length=255)
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    account_id: Optional[str] = None
    is_active: bool = True
    last_synced_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class IntegrationRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    platform: Platform
    name: str
    # Secrets never leave the server
    access_token: Optional[str] = Field(None, exclude=True)
    refresh_token: Optional[str] = Field(None, exclude=True)
    account_id: Optional[str] = None
    is_active: bool = True
    last_synced_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ── Campaigns ─────────────────────────────────────────────────────────

class CampaignInsert(BaseModel):
    id: str
    user_id: str
    integration_id: str
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    campaign_type: CampaignType
    status: CampaignStatus = CampaignStatus.DRAFT
    budget: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    target_audience: Optional[TargetAudience] = None
    created_at: Optional[datetime] = None


class CampaignUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[CampaignStatus] = None
    budget: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    target_audience: Optional[TargetAudience] = None


class CampaignRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    integration_id: str
    name: str
    description: Optional[str] = None
    campaign_type: CampaignType
    status: CampaignStatus
    budget: Optional[Decimal] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    target_audience: Optional[TargetAudience] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ── Metrics ───────────────────────────────────────────────────────────

class CampaignMetricInsert(BaseModel):
    id: str
    campaign_id: str
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    spend: Decimal = Decimal("0")
    revenue: Decimal = Decimal("0")
    ctr: Decimal = Decimal("0")
    cpc: Decimal = Decimal("0")
    roas: Decimal = Decimal("0")
    engagement_rate: Decimal = Decimal("0")
    recorded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class CampaignMetricRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    campaign_id: str
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    spend: Decimal = Decimal("0")
    revenue: Decimal = Decimal("0")
    ctr: Decimal = Decimal("0")
    cpc: Decimal = Decimal("0")
    roas: Decimal = Decimal("0")
    engagement_rate: Decimal = Decimal("0")
    recorded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


# ── Predictions ───────────────────────────────────────────────────────

class PredictionInsert(BaseModel):
    id: str
    campaign_id: str
    prediction_type: PredictionType
    predicted_value: Optional[Decimal] = None
    confidence: Optional[Decimal] = None
    insights: Optional[dict] = None
    recommendation: Optional[str] = None
    actual_value: Optional[Decimal] = None
    accuracy: Optional[Decimal] = None
    created_at: Optional[datetime] = None


class PredictionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    campaign_id: str
    prediction_type: PredictionType
    predicted_value: Optional[Decimal] = None
    confidence: Optional[Decimal] = None
    insights: Optional[dict] = None
    recommendation: Optional[str] = None
    actual_value: Optional[Decimal] = None
    accuracy: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ── Recommendations ───────────────────────────────────────────────────

class RecommendationInsert(BaseModel):
    id: str
    campaign_id: str
    recommendation_type: RecommendationType
    current_value: Optional[str] = None
    suggested_value: Optional[str] = None
    expected_impact: Optional[Decimal] = None
    priority: Priority = Priority.MEDIUM
    status: RecommendationStatus = RecommendationStatus.PENDING
    applied_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class RecommendationUpdate(BaseModel):
    status: Optional[RecommendationStatus] = None
    applied_at: Optional[datetime] = None
    suggested_value: Optional[str] = None
    priority: Optional[Priority] = None


class RecommendationRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    campaign_id: str
    recommendation_type: RecommendationType
    current_value: Optional[str] = None
    suggested_value: Optional[str] = None
    expected_impact: Optional[Decimal] = None
    priority: Priority
    status: RecommendationStatus
    applied_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ── Alerts ────────────────────────────────────────────────────────────

class AlertInsert(BaseModel):
    id: str
    user_id: str
    campaign_id: Optional[str] = None
    alert_type: AlertType
    title: str = Field(min_length=1, max_length=255)
    message: Optional[str] = None
    severity: Severity = Severity.INFO
    is_read: bool = False
    action_url: Optional[str] = Field(None, max_length=500)
    created_at: Optional[datetime] = None


class AlertRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    campaign_id: Optional[str] = None
    alert_type: AlertType
    title: str
    message: Optional[str] = None
    severity: Severity
    is_read: bool
    action_url: Optional[str] = None
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
