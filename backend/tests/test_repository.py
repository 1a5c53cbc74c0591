"""
Tests for repository reads and writes against a real SQLite store.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from unittest.mock import patch

from dashboard import repository
from dashboard.models import (
    AlertType, CampaignStatus, CampaignType, Platform, PredictionType,
    Priority, RecommendationStatus, RecommendationType, UserRole,
)
from dashboard.schemas import (
    AlertInsert, CampaignInsert, CampaignMetricInsert, CampaignUpdate, IntegrationInsert,
    PredictionInsert, RecommendationInsert, TargetAudience, UserUpsert,
)

pytestmark = pytest.mark.anyio

T0 = datetime(2026, 1, 1, 12, 0, 0)


async def _seed(database, user_id="u1", campaign_id="c1"):
    await repository.upsert_user(database, UserUpsert(id=user_id, name="Owner"))
    await repository.create_integration(database, IntegrationInsert(
        id=f"i-{campaign_id}", user_id=user_id, platform=Platform.HUBSPOT, name="CRM",
    ))
    await repository.create_campaign(database, CampaignInsert(
        id=campaign_id, user_id=user_id, integration_id=f"i-{campaign_id}",
        name="Launch", campaign_type=CampaignType.CONTENT, budget=Decimal("500.00"),
    ))


# ── Users ─────────────────────────────────────────────────────────────

async def test_upsert_promotes_owner_to_admin(database):
    await repository.upsert_user(database, UserUpsert(id="owner-1"), owner_id="owner-1")
    await repository.upsert_user(database, UserUpsert(id="someone"), owner_id="owner-1")

    assert (await repository.get_user(database, "owner-1")).role == UserRole.ADMIN
    assert (await repository.get_user(database, "someone")).role == UserRole.USER


async def test_upsert_merges_only_provided_fields(database):
    await repository.upsert_user(database, UserUpsert(id="u1", name="Ada", email="ada@example.com"))
    await repository.upsert_user(database, UserUpsert(id="u1", email="ada@new.example.com"))

    user = await repository.get_user(database, "u1")
    assert user.name == "Ada"
    assert user.email == "ada@new.example.com"


async def test_upsert_explicit_role_wins_over_owner(database):
    await repository.upsert_user(database, UserUpsert(id="owner-1", role=UserRole.USER), owner_id="owner-1")
    assert (await repository.get_user(database, "owner-1")).role == UserRole.USER


async def test_upsert_with_nothing_to_merge_stamps_last_signed_in(database):
    await repository.upsert_user(database, UserUpsert(id="u1", name="Ada"))
    with patch("dashboard.repository.utcnow", return_value=T0):
        await repository.upsert_user(database, UserUpsert(id="u1"))

    user = await repository.get_user(database, "u1")
    assert user.last_signed_in == T0
    assert user.name == "Ada"


# ── Campaigns ─────────────────────────────────────────────────────────

async def test_campaigns_listed_newest_first(database):
    await _seed(database)
    for i, created in enumerate([T0, T0 + timedelta(days=2), T0 + timedelta(days=1)]):
        await repository.create_campaign(database, CampaignInsert(
            id=f"c-{i}", user_id="u1", integration_id="i-c1", name=f"Campaign {i}",
            campaign_type=CampaignType.EMAIL, created_at=created,
        ))

    campaigns = await repository.list_user_campaigns(database, "u1")
    dated = [c for c in campaigns if c.id.startswith("c-")]
    assert [c.id for c in dated] == ["c-1", "c-2", "c-0"]
    assert await repository.list_user_campaigns(database, "nobody") == []


async def test_campaign_round_trips_target_audience(database):
    await _seed(database)
    audience = TargetAudience(segments=["returning"], locations=["DE"], min_age=25, max_age=45)
    await repository.update_campaign(database, "c1", CampaignUpdate(target_audience=audience))

    campaign = await repository.get_campaign(database, "c1")
    assert campaign.target_audience == audience
    assert campaign.status == CampaignStatus.DRAFT


async def test_update_campaign_is_partial(database):
    await _seed(database)
    await repository.update_campaign(database, "c1", CampaignUpdate(status=CampaignStatus.RUNNING))

    campaign = await repository.get_campaign(database, "c1")
    assert campaign.status == CampaignStatus.RUNNING
    assert campaign.name == "Launch"
    assert campaign.budget == Decimal("500.00")


# ── Metrics ───────────────────────────────────────────────────────────

async def test_latest_metric_and_spend_total(database):
    await _seed(database)
    snapshots = [(T0, "10.50"), (T0 + timedelta(hours=2), "4.25"), (T0 + timedelta(hours=1), "1.00")]
    for i, (recorded, spend) in enumerate(snapshots):
        await repository.create_campaign_metric(database, CampaignMetricInsert(
            id=f"m-{i}", campaign_id="c1", spend=Decimal(spend), recorded_at=recorded,
        ))

    latest = await repository.get_latest_campaign_metric(database, "c1")
    assert latest.id == "m-1"
    assert [m.id for m in await repository.list_campaign_metrics(database, "c1")] == ["m-1", "m-2", "m-0"]
    assert await repository.sum_campaign_spend(database, "c1") == Decimal("15.75")
    assert await repository.sum_campaign_spend(database, "other") == 0


# ── Predictions ───────────────────────────────────────────────────────

async def test_latest_prediction_by_type(database):
    await _seed(database)
    rows = [
        ("p-old", PredictionType.PERFORMANCE, T0),
        ("p-new", PredictionType.PERFORMANCE, T0 + timedelta(minutes=5)),
        ("p-timing", PredictionType.OPTIMAL_TIMING, T0 + timedelta(minutes=10)),
    ]
    for pid, ptype, created in rows:
        await repository.create_prediction(database, PredictionInsert(
            id=pid, campaign_id="c1", prediction_type=ptype, created_at=created,
            insights={"records_used": 1},
        ))

    latest = await repository.get_latest_prediction(database, "c1", PredictionType.PERFORMANCE)
    assert latest.id == "p-new"
    assert latest.insights == {"records_used": 1}
    assert await repository.get_latest_prediction(database, "c1", PredictionType.CONVERSION_RATE) is None


# ── Recommendations ───────────────────────────────────────────────────

async def test_pending_recommendations_ordered_by_priority(database):
    await _seed(database)
    rows = [
        ("r-low", Priority.LOW, RecommendationStatus.PENDING),
        ("r-high", Priority.HIGH, RecommendationStatus.PENDING),
        ("r-medium", Priority.MEDIUM, RecommendationStatus.PENDING),
        ("r-applied", Priority.HIGH, RecommendationStatus.APPLIED),
    ]
    for rid, priority, status in rows:
        await repository.create_recommendation(database, RecommendationInsert(
            id=rid, campaign_id="c1", recommendation_type=RecommendationType.BUDGET_ALLOCATION,
            priority=priority, status=status,
        ))

    pending = await repository.list_pending_recommendations(database, "c1")
    assert [r.id for r in pending] == ["r-high", "r-medium", "r-low"]
    assert len(await repository.list_campaign_recommendations(database, "c1")) == 4


# ── Alerts ────────────────────────────────────────────────────────────

async def test_mark_alert_read_keeps_first_read_at(database):
    await _seed(database)
    await repository.create_alert(database, AlertInsert(
        id="a1", user_id="u1", campaign_id="c1",
        alert_type=AlertType.ANOMALY_DETECTED, title="Spike in bounces",
    ))
    assert [a.id for a in await repository.list_unread_alerts(database, "u1")] == ["a1"]

    with patch("dashboard.repository.utcnow", return_value=T0):
        await repository.mark_alert_read(database, "a1")
    with patch("dashboard.repository.utcnow", return_value=T0 + timedelta(hours=1)):
        await repository.mark_alert_read(database, "a1")

    alert = await repository.get_alert(database, "a1")
    assert alert.is_read is True
    assert alert.read_at == T0
    assert await repository.list_unread_alerts(database, "u1") == []
    assert len(await repository.list_user_alerts(database, "u1")) == 1
