"""
Campaign Dashboard — Database Models
Users, integrations, campaigns, metrics, predictions, recommendations and alerts.
Primary keys are caller-assigned string ids; nothing here generates ids.
"""

import enum
from datetime import datetime
from decimal import Decimal
from sqlalchemy import (
    String, Text, Integer, Boolean, DateTime, Numeric,
    JSON, ForeignKey, Index,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column
from dashboard.database import Base
from dashboard.utils import utcnow


# ══════════════════════════════════════════════════════════════════════
#  ENUMS
# ══════════════════════════════════════════════════════════════════════

class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class Platform(str, enum.Enum):
    GOOGLE_ANALYTICS = "google_analytics"
    FACEBOOK_ADS = "facebook_ads"
    MAILCHIMP = "mailchimp"
    HUBSPOT = "hubspot"
    MANUAL_UPLOAD = "manual_upload"


class CampaignType(str, enum.Enum):
    EMAIL = "email"
    SOCIAL_MEDIA = "social_media"
    PAID_ADS = "paid_ads"
    CONTENT = "content"


class CampaignStatus(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    COMPLETED = "completed"
    PAUSED = "paused"


class PredictionType(str, enum.Enum):
    PERFORMANCE = "performance"
    CONVERSION_RATE = "conversion_rate"
    OPTIMAL_TIMING = "optimal_timing"
    AUDIENCE_SEGMENT = "audience_segment"
    CONTENT_PERFORMANCE = "content_performance"


class RecommendationType(str, enum.Enum):
    HEADLINE_OPTIMIZATION = "headline_optimization"
    AUDIENCE_SEGMENTATION = "audience_segmentation"
    SEND_TIME_OPTIMIZATION = "send_time_optimization"
    BUDGET_ALLOCATION = "budget_allocation"
    CONTENT_SUGGESTION = "content_suggestion"


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecommendationStatus(str, enum.Enum):
    PENDING = "pending"
    APPLIED = "applied"
    DISMISSED = "dismissed"


class AlertType(str, enum.Enum):
    PERFORMANCE_DROP = "performance_drop"
    BUDGET_THRESHOLD = "budget_threshold"
    ANOMALY_DETECTED = "anomaly_detected"
    RECOMMENDATION_AVAILABLE = "recommendation_available"
    INTEGRATION_ERROR = "integration_error"


class Severity(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


def _enum_column(enum_cls: type[enum.Enum], name: str) -> SAEnum:
    """VARCHAR + CHECK constraint storing enum values; unknown strings raise."""
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        length=32,
        values_callable=lambda e: [m.value for m in e],
    )


# ══════════════════════════════════════════════════════════════════════
#  USERS — Identities resolved by the session provider
# ══════════════════════════════════════════════════════════════════════

class User(Base):
    """Dashboard user. Id comes from the identity provider."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=True)
    email: Mapped[str] = mapped_column(String(320), nullable=True)
    login_method: Mapped[str] = mapped_column(String(64), nullable=True)
    role: Mapped[UserRole] = mapped_column(_enum_column(UserRole, "user_role"), nullable=False, default=UserRole.USER)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    last_signed_in: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


# ══════════════════════════════════════════════════════════════════════
#  INTEGRATIONS — Connected marketing platforms
# ══════════════════════════════════════════════════════════════════════

class Integration(Base):
    """A connected platform account. Tokens are stored encrypted (see crypto.py)."""
    __tablename__ = "integrations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    platform: Mapped[Platform] = mapped_column(_enum_column(Platform, "platform"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    access_token: Mapped[str] = mapped_column(Text, nullable=True)
    refresh_token: Mapped[str] = mapped_column(Text, nullable=True)
    account_id: Mapped[str] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_synced_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_integrations_user_id", "user_id"),
    )


# ══════════════════════════════════════════════════════════════════════
#  CAMPAIGNS
# ══════════════════════════════════════════════════════════════════════

class Campaign(Base):
    """A marketing campaign owned by a user and fed by one integration."""
    __tablename__ = "campaigns"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    integration_id: Mapped[str] = mapped_column(String(64), ForeignKey("integrations.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=True)
    campaign_type: Mapped[CampaignType] = mapped_column(_enum_column(CampaignType, "campaign_type"), nullable=False)
    status: Mapped[CampaignStatus] = mapped_column(
        _enum_column(CampaignStatus, "campaign_status"), nullable=False, default=CampaignStatus.DRAFT,
    )
    budget: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=True)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=True)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=True)
    target_audience: Mapped[dict] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_campaigns_user_id", "user_id"),
        Index("ix_campaigns_integration_id", "integration_id"),
    )


class CampaignMetric(Base):
    """Point-in-time performance snapshot. Several per timestamp are allowed."""
    __tablename__ = "campaign_metrics"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    campaign_id: Mapped[str] = mapped_column(String(64), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False)
    impressions: Mapped[int] = mapped_column(Integer, default=0)
    clicks: Mapped[int] = mapped_column(Integer, default=0)
    conversions: Mapped[int] = mapped_column(Integer, default=0)
    spend: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    revenue: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    ctr: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)  # Click-through rate, percent
    cpc: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)  # Cost per click
    roas: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)  # Return on ad spend
    engagement_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    __table_args__ = (
        Index("ix_campaign_metrics_campaign_recorded", "campaign_id", "recorded_at"),
    )


# ══════════════════════════════════════════════════════════════════════
#  PREDICTIONS & RECOMMENDATIONS
# ══════════════════════════════════════════════════════════════════════

class Prediction(Base):
    """Forward-looking estimate for a campaign."""
    __tablename__ = "predictions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    campaign_id: Mapped[str] = mapped_column(String(64), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False)
    prediction_type: Mapped[PredictionType] = mapped_column(
        _enum_column(PredictionType, "prediction_type"), nullable=False,
    )
    predicted_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=True)
    confidence: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=True)  # 0-100
    insights: Mapped[dict] = mapped_column(JSON, nullable=True)
    recommendation: Mapped[str] = mapped_column(Text, nullable=True)
    actual_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=True)
    accuracy: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=True)  # 0-100
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_predictions_campaign_type", "campaign_id", "prediction_type"),
    )


class Recommendation(Base):
    """Suggested change to a campaign; pending until applied or dismissed."""
    __tablename__ = "recommendations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    campaign_id: Mapped[str] = mapped_column(String(64), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False)
    recommendation_type: Mapped[RecommendationType] = mapped_column(
        _enum_column(RecommendationType, "recommendation_type"), nullable=False,
    )
    current_value: Mapped[str] = mapped_column(Text, nullable=True)
    suggested_value: Mapped[str] = mapped_column(Text, nullable=True)
    expected_impact: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=True)  # Percentage improvement
    priority: Mapped[Priority] = mapped_column(_enum_column(Priority, "priority"), nullable=False, default=Priority.MEDIUM)
    status: Mapped[RecommendationStatus] = mapped_column(
        _enum_column(RecommendationStatus, "recommendation_status"), nullable=False,
        default=RecommendationStatus.PENDING,
    )
    applied_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_recommendations_campaign_status", "campaign_id", "status"),
    )


# ══════════════════════════════════════════════════════════════════════
#  ALERTS
# ══════════════════════════════════════════════════════════════════════

class Alert(Base):
    """Notification for a user, optionally tied to a campaign."""
    __tablename__ = "alerts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    campaign_id: Mapped[str] = mapped_column(String(64), ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True)
    alert_type: Mapped[AlertType] = mapped_column(_enum_column(AlertType, "alert_type"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=True)
    severity: Mapped[Severity] = mapped_column(_enum_column(Severity, "severity"), nullable=False, default=Severity.INFO)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    action_url: Mapped[str] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    read_at: Mapped[datetime] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_alerts_user_read", "user_id", "is_read"),
    )
