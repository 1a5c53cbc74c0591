"""Initial dashboard schema: users, integrations, campaigns, metrics, predictions,
recommendations and alerts.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _enum(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=True, length=32)


def _timestamps(with_updated: bool = True) -> list[sa.Column]:
    cols = [sa.Column("created_at", sa.DateTime(), nullable=True)]
    if with_updated:
        cols.append(sa.Column("updated_at", sa.DateTime(), nullable=True))
    return cols


def upgrade() -> None:
    conn = op.get_bind()
    existing = sa.inspect(conn).get_table_names()

    if "users" in existing:
        return  # Already applied (e.g. from create_all)

    op.create_table(
        "users",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("login_method", sa.String(64), nullable=True),
        sa.Column("role", _enum("user_role", "user", "admin"), nullable=False, server_default="user"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("last_signed_in", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "integrations",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "platform",
            _enum("platform", "google_analytics", "facebook_ads", "mailchimp", "hubspot", "manual_upload"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        sa.Column("account_id", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_synced_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_integrations_user_id", "integrations", ["user_id"])

    op.create_table(
        "campaigns",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "integration_id", sa.String(64),
            sa.ForeignKey("integrations.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "campaign_type", _enum("campaign_type", "email", "social_media", "paid_ads", "content"),
            nullable=False,
        ),
        sa.Column(
            "status", _enum("campaign_status", "draft", "scheduled", "running", "completed", "paused"),
            nullable=False, server_default="draft",
        ),
        sa.Column("budget", sa.Numeric(10, 2), nullable=True),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("target_audience", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_campaigns_user_id", "campaigns", ["user_id"])
    op.create_index("ix_campaigns_integration_id", "campaigns", ["integration_id"])

    op.create_table(
        "campaign_metrics",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("campaign_id", sa.String(64), sa.ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False),
        sa.Column("impressions", sa.Integer(), nullable=True, server_default="0"),
        sa.Column("clicks", sa.Integer(), nullable=True, server_default="0"),
        sa.Column("conversions", sa.Integer(), nullable=True, server_default="0"),
        sa.Column("spend", sa.Numeric(10, 2), nullable=True, server_default="0"),
        sa.Column("revenue", sa.Numeric(10, 2), nullable=True, server_default="0"),
        sa.Column("ctr", sa.Numeric(10, 2), nullable=True, server_default="0"),
        sa.Column("cpc", sa.Numeric(10, 2), nullable=True, server_default="0"),
        sa.Column("roas", sa.Numeric(10, 2), nullable=True, server_default="0"),
        sa.Column("engagement_rate", sa.Numeric(10, 2), nullable=True, server_default="0"),
        sa.Column("recorded_at", sa.DateTime(), nullable=True),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_campaign_metrics_campaign_recorded", "campaign_metrics", ["campaign_id", "recorded_at"],
    )

    op.create_table(
        "predictions",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("campaign_id", sa.String(64), sa.ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "prediction_type",
            _enum(
                "prediction_type", "performance", "conversion_rate", "optimal_timing",
                "audience_segment", "content_performance",
            ),
            nullable=False,
        ),
        sa.Column("predicted_value", sa.Numeric(10, 2), nullable=True),
        sa.Column("confidence", sa.Numeric(5, 2), nullable=True),
        sa.Column("insights", sa.JSON(), nullable=True),
        sa.Column("recommendation", sa.Text(), nullable=True),
        sa.Column("actual_value", sa.Numeric(10, 2), nullable=True),
        sa.Column("accuracy", sa.Numeric(5, 2), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_predictions_campaign_type", "predictions", ["campaign_id", "prediction_type"])

    op.create_table(
        "recommendations",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("campaign_id", sa.String(64), sa.ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "recommendation_type",
            _enum(
                "recommendation_type", "headline_optimization", "audience_segmentation",
                "send_time_optimization", "budget_allocation", "content_suggestion",
            ),
            nullable=False,
        ),
        sa.Column("current_value", sa.Text(), nullable=True),
        sa.Column("suggested_value", sa.Text(), nullable=True),
        sa.Column("expected_impact", sa.Numeric(5, 2), nullable=True),
        sa.Column("priority", _enum("priority", "low", "medium", "high"), nullable=False, server_default="medium"),
        sa.Column(
            "status", _enum("recommendation_status", "pending", "applied", "dismissed"),
            nullable=False, server_default="pending",
        ),
        sa.Column("applied_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_recommendations_campaign_status", "recommendations", ["campaign_id", "status"])

    op.create_table(
        "alerts",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("campaign_id", sa.String(64), sa.ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "alert_type",
            _enum(
                "alert_type", "performance_drop", "budget_threshold", "anomaly_detected",
                "recommendation_available", "integration_error",
            ),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("severity", _enum("severity", "info", "warning", "critical"), nullable=False, server_default="info"),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("action_url", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_alerts_user_read", "alerts", ["user_id", "is_read"])


def downgrade() -> None:
    for index, table in (
        ("ix_alerts_user_read", "alerts"),
        ("ix_recommendations_campaign_status", "recommendations"),
        ("ix_predictions_campaign_type", "predictions"),
        ("ix_campaign_metrics_campaign_recorded", "campaign_metrics"),
        ("ix_campaigns_integration_id", "campaigns"),
        ("ix_campaigns_user_id", "campaigns"),
        ("ix_integrations_user_id", "integrations"),
    ):
        op.drop_index(index, table_name=table)
    for table in (
        "alerts", "recommendations", "predictions", "campaign_metrics",
        "campaigns", "integrations", "users",
    ):
        op.drop_table(table)
