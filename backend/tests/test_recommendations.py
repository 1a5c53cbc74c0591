"""
Tests for recommendation generation and the apply / dismiss lifecycle.
"""

import logging
import os
from decimal import Decimal

import pytest
from pydantic import ValidationError
from unittest.mock import patch

from dashboard.config import get_settings
from dashboard.main import app
from dashboard.models import RecommendationStatus, RecommendationType
from dashboard.schemas import RecommendationRecord
from dashboard.services.llm_service import get_llm_service
from dashboard.services.recommendation_service import (
    AudienceSegment, InvalidTransitionError, plan_transition, top_segments,
)

SEGMENTS = [
    {"segment": "A", "engagement_rate": 0.1},
    {"segment": "B", "engagement_rate": 0.5},
    {"segment": "C", "engagement_rate": 0.3},
    {"segment": "D", "engagement_rate": 0.9},
]


def _record(status):
    return RecommendationRecord(
        id="r1", campaign_id="c1", recommendation_type=RecommendationType.CONTENT_SUGGESTION,
        priority="medium", status=status,
    )


def test_top_segments_by_engagement():
    chosen = top_segments([AudienceSegment(**s) for s in SEGMENTS])
    assert [s.segment for s in chosen] == ["D", "B", "C"]


def test_segments_reject_non_finite_rates():
    with pytest.raises(ValidationError):
        AudienceSegment(segment="A", engagement_rate=float("nan"))


def test_plan_transition():
    applied = plan_transition(_record(RecommendationStatus.PENDING), RecommendationStatus.APPLIED)
    assert applied.status == RecommendationStatus.APPLIED
    assert applied.applied_at is not None

    dismissed = plan_transition(_record(RecommendationStatus.PENDING), RecommendationStatus.DISMISSED)
    assert dismissed.applied_at is None

    assert plan_transition(_record(RecommendationStatus.APPLIED), RecommendationStatus.APPLIED) is None
    with pytest.raises(InvalidTransitionError):
        plan_transition(_record(RecommendationStatus.DISMISSED), RecommendationStatus.APPLIED)


# ── Endpoints ─────────────────────────────────────────────────────────

async def _segmentation(client, headers, campaign_id):
    return await client.post("/api/recommendations/audience-segmentation", headers=headers, json={
        "campaign_id": campaign_id, "audience_data": SEGMENTS,
    })


async def _list(client, headers, campaign_id):
    response = await client.get("/api/recommendations", headers=headers, params={"campaign_id": campaign_id})
    return response.json()


@pytest.mark.anyio
async def test_audience_segmentation(client, alice, campaign):
    response = await _segmentation(client, alice, campaign["id"])
    assert response.status_code == 200
    data = response.json()
    assert data["current_value"] == "Broad audience targeting"
    assert data["suggested_value"] == "Focus on: D, B, C"
    assert Decimal(data["expected_impact"]) == Decimal("22")
    assert data["priority"] == "high"
    assert data["status"] == "pending"

    alerts = (await client.get("/api/alerts/unread", headers=alice)).json()
    assert [a["alert_type"] for a in alerts] == ["recommendation_available"]
    assert alerts[0]["severity"] == "info"


@pytest.mark.anyio
async def test_headline_optimization(client, alice, campaign, fake_llm):
    response = await client.post("/api/recommendations/headline-optimization", headers=alice, json={
        "campaign_id": campaign["id"], "current_headline": "Summer Sale Now On",
    })
    assert response.status_code == 200
    data = response.json()
    assert data["recommendation_type"] == "headline_optimization"
    assert data["current_value"] == "Summer Sale Now On"
    assert data["suggested_value"] == fake_llm.generate_headline_alternatives.return_value
    assert Decimal(data["expected_impact"]) == Decimal("15")
    fake_llm.generate_headline_alternatives.assert_awaited_once_with("Summer Sale Now On")


@pytest.mark.anyio
async def test_headline_failure_stores_nothing(client, alice, campaign, fake_llm, caplog):
    fake_llm.generate_headline_alternatives.side_effect = TimeoutError("provider timed out")
    with caplog.at_level(logging.ERROR):
        response = await client.post("/api/recommendations/headline-optimization", headers=alice, json={
            "campaign_id": campaign["id"], "current_headline": "Summer Sale Now On",
        })
    assert response.status_code == 502
    assert "timed out" not in response.json()["detail"]
    failures = [r for r in caplog.records if r.levelno >= logging.ERROR and "provider timed out" in r.getMessage()]
    assert len(failures) == 1
    assert await _list(client, alice, campaign["id"]) == []


@pytest.mark.anyio
async def test_headline_without_provider_key(client, alice, campaign):
    app.dependency_overrides.pop(get_llm_service)
    with patch.dict(os.environ, {"LLM_MODEL": "openai:gpt-4o", "OPENAI_API_KEY": ""}, clear=False):
        get_settings.cache_clear()
        response = await client.post("/api/recommendations/headline-optimization", headers=alice, json={
            "campaign_id": campaign["id"], "current_headline": "Summer Sale Now On",
        })
    get_settings.cache_clear()
    assert response.status_code == 503


@pytest.mark.anyio
async def test_apply_is_idempotent_and_final(client, alice, campaign):
    rec = (await _segmentation(client, alice, campaign["id"])).json()

    assert (await client.post(f"/api/recommendations/{rec['id']}/apply", headers=alice)).json() == {"success": True}
    applied = (await _list(client, alice, campaign["id"]))[0]
    assert applied["status"] == "applied"
    assert applied["applied_at"] is not None

    again = await client.post(f"/api/recommendations/{rec['id']}/apply", headers=alice)
    assert again.status_code == 200
    assert (await _list(client, alice, campaign["id"]))[0]["applied_at"] == applied["applied_at"]

    conflict = await client.post(f"/api/recommendations/{rec['id']}/dismiss", headers=alice)
    assert conflict.status_code == 409


@pytest.mark.anyio
async def test_dismiss_leaves_applied_at_empty(client, alice, campaign):
    rec = (await _segmentation(client, alice, campaign["id"])).json()
    assert (await client.post(f"/api/recommendations/{rec['id']}/dismiss", headers=alice)).status_code == 200

    dismissed = (await _list(client, alice, campaign["id"]))[0]
    assert dismissed["status"] == "dismissed"
    assert dismissed["applied_at"] is None
    pending = await client.get("/api/recommendations/pending", headers=alice, params={"campaign_id": campaign["id"]})
    assert pending.json() == []
    assert (await client.post(f"/api/recommendations/{rec['id']}/apply", headers=alice)).status_code == 409


@pytest.mark.anyio
async def test_recommendations_are_scoped(client, alice, bob, campaign):
    rec = (await _segmentation(client, alice, campaign["id"])).json()

    assert (await _segmentation(client, bob, campaign["id"])).status_code == 404
    assert await _list(client, bob, campaign["id"]) == []
    assert (await client.post(f"/api/recommendations/{rec['id']}/apply", headers=bob)).status_code == 404
    assert (await client.post("/api/recommendations/missing/dismiss", headers=alice)).status_code == 404
    assert (await _list(client, alice, campaign["id"]))[0]["status"] == "pending"
