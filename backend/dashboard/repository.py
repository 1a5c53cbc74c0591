"""
Repository — every read and write against the store goes through here.

Reads return ``[]`` / ``None`` when the store is unavailable, so callers treat
"unavailable" and "no rows" the same. Writes raise ``StoreUnavailableError``.
No function here scopes by owner; the routers do that (see auth.py).
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dashboard.database import Database
from dashboard.models import (
    Alert, Campaign, CampaignMetric, Integration, Prediction, PredictionType,
    Priority, Recommendation, RecommendationStatus, User, UserRole,
)
from dashboard.schemas import (
    AlertInsert, AlertRecord,
    CampaignInsert, CampaignMetricInsert, CampaignMetricRecord, CampaignRecord, CampaignUpdate,
    IntegrationInsert, IntegrationRecord,
    PredictionInsert, PredictionRecord,
    RecommendationInsert, RecommendationRecord, RecommendationUpdate,
    UserRecord, UserUpsert,
)
from dashboard.utils import utcnow

logger = logging.getLogger(__name__)


class StoreUnavailableError(RuntimeError):
    """The store could not be reached for a write."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Database not available: cannot {operation}")


# ── Helpers ───────────────────────────────────────────────────────────

async def ensure_available(database: Database) -> None:
    """Fail a mutating procedure up front when the store is down."""
    if await database.acquire() is None:
        raise StoreUnavailableError("process request")


async def _writer(database: Database, operation: str) -> async_sessionmaker[AsyncSession]:
    factory = await database.acquire()
    if factory is None:
        logger.warning(f"[Database] Cannot {operation}: database not available")
        raise StoreUnavailableError(operation)
    return factory


async def _reader(database: Database, operation: str) -> Optional[async_sessionmaker[AsyncSession]]:
    factory = await database.acquire()
    if factory is None:
        logger.warning(f"[Database] Cannot {operation}: database not available")
    return factory


async def _insert(database: Database, model_cls, payload, operation: str):
    """Single-row insert. Returns the payload as given, not a re-read row."""
    factory = await _writer(database, operation)
    async with factory() as session:
        session.add(model_cls(**payload.model_dump(exclude_none=True)))
        await session.commit()
    return payload


async def _execute(database: Database, stmt, operation: str) -> None:
    factory = await _writer(database, operation)
    async with factory() as session:
        await session.execute(stmt)
        await session.commit()


async def _fetch_all(database: Database, stmt, record_cls, operation: str) -> list:
    factory = await _reader(database, operation)
    if factory is None:
        return []
    async with factory() as session:
        result = await session.execute(stmt)
        return [record_cls.model_validate(row) for row in result.scalars().all()]


async def _fetch_one(database: Database, stmt, record_cls, operation: str):
    factory = await _reader(database, operation)
    if factory is None:
        return None
    async with factory() as session:
        result = await session.execute(stmt.limit(1))
        row = result.scalars().first()
        return record_cls.model_validate(row) if row is not None else None


def _dialect_insert(session: AsyncSession, table):
    """INSERT construct that supports ON CONFLICT for the bound backend."""
    if session.bind.dialect.name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as _pg_insert
        return _pg_insert(table)
    from sqlalchemy.dialects.sqlite import insert as _sqlite_insert
    return _sqlite_insert(table)


# ══════════════════════════════════════════════════════════════════════
#  USERS
# ══════════════════════════════════════════════════════════════════════

async def upsert_user(database: Database, user: UserUpsert, owner_id: Optional[str] = None) -> None:
    """
    Insert the user or merge into the existing row.

    Only fields the caller explicitly set are written on conflict; an explicit
    None overwrites. Without a role, the owner id is promoted to admin. When
    nothing would be merged, last_signed_in is stamped so the write is observable.
    """
    provided = user.model_fields_set
    values: dict = {"id": user.id}
    update_set: dict = {}

    for field in ("name", "email", "login_method", "last_signed_in"):
        if field in provided:
            values[field] = getattr(user, field)
            update_set[field] = getattr(user, field)

    if user.role is not None:
        values["role"] = user.role
        update_set["role"] = user.role
    elif owner_id and user.id == owner_id:
        values["role"] = UserRole.ADMIN
        update_set["role"] = UserRole.ADMIN

    if not update_set:
        update_set["last_signed_in"] = utcnow()

    factory = await _writer(database, "upsert user")
    async with factory() as session:
        stmt = _dialect_insert(session, User).values(**values)
        stmt = stmt.on_conflict_do_update(index_elements=[User.id], set_=update_set)
        await session.execute(stmt)
        await session.commit()


async def get_user(database: Database, user_id: str) -> Optional[UserRecord]:
    return await _fetch_one(database, select(User).where(User.id == user_id), UserRecord, "get user")


# ══════════════════════════════════════════════════════════════════════
#  CAMPAIGNS
# ══════════════════════════════════════════════════════════════════════

async def create_campaign(database: Database, data: CampaignInsert) -> CampaignInsert:
    return await _insert(database, Campaign, data, "create campaign")


async def list_user_campaigns(database: Database, user_id: str) -> list[CampaignRecord]:
    stmt = select(Campaign).where(Campaign.user_id == user_id).order_by(Campaign.created_at.desc())
    return await _fetch_all(database, stmt, CampaignRecord, "list campaigns")


async def get_campaign(database: Database, campaign_id: str) -> Optional[CampaignRecord]:
    return await _fetch_one(database, select(Campaign).where(Campaign.id == campaign_id), CampaignRecord, "get campaign")


async def update_campaign(database: Database, campaign_id: str, updates: CampaignUpdate) -> None:
    """Partial merge of the fields set on ``updates``; a missing row is not an error."""
    values = updates.model_dump(exclude_unset=True)
    values["updated_at"] = utcnow()
    await _execute(database, update(Campaign).where(Campaign.id == campaign_id).values(**values), "update campaign")


# ══════════════════════════════════════════════════════════════════════
#  INTEGRATIONS
# ══════════════════════════════════════════════════════════════════════

async def create_integration(database: Database, data: IntegrationInsert) -> IntegrationInsert:
    return await _insert(database, Integration, data, "create integration")


async def list_user_integrations(database: Database, user_id: str) -> list[IntegrationRecord]:
    stmt = select(Integration).where(Integration.user_id == user_id).order_by(Integration.created_at.desc())
    return await _fetch_all(database, stmt, IntegrationRecord, "list integrations")


async def get_integration(database: Database, integration_id: str) -> Optional[IntegrationRecord]:
    stmt = select(Integration).where(Integration.id == integration_id)
    return await _fetch_one(database, stmt, IntegrationRecord, "get integration")


# ══════════════════════════════════════════════════════════════════════
#  CAMPAIGN METRICS
# ══════════════════════════════════════════════════════════════════════

async def create_campaign_metric(database: Database, data: CampaignMetricInsert) -> CampaignMetricInsert:
    return await _insert(database, CampaignMetric, data, "create campaign metric")


async def list_campaign_metrics(database: Database, campaign_id: str) -> list[CampaignMetricRecord]:
    stmt = (
        select(CampaignMetric)
        .where(CampaignMetric.campaign_id == campaign_id)
        .order_by(CampaignMetric.recorded_at.desc())
    )
    return await _fetch_all(database, stmt, CampaignMetricRecord, "list campaign metrics")


async def get_latest_campaign_metric(database: Database, campaign_id: str) -> Optional[CampaignMetricRecord]:
    stmt = (
        select(CampaignMetric)
        .where(CampaignMetric.campaign_id == campaign_id)
        .order_by(CampaignMetric.recorded_at.desc())
    )
    return await _fetch_one(database, stmt, CampaignMetricRecord, "get latest campaign metric")


async def sum_campaign_spend(database: Database, campaign_id: str) -> Decimal:
    factory = await _reader(database, "sum campaign spend")
    if factory is None:
        return Decimal("0")
    async with factory() as session:
        result = await session.execute(
            select(func.coalesce(func.sum(CampaignMetric.spend), 0))
            .where(CampaignMetric.campaign_id == campaign_id)
        )
        return Decimal(str(result.scalar() or 0))


# ══════════════════════════════════════════════════════════════════════
#  PREDICTIONS
# ══════════════════════════════════════════════════════════════════════

async def create_prediction(database: Database, data: PredictionInsert) -> PredictionInsert:
    return await _insert(database, Prediction, data, "create prediction")


async def list_campaign_predictions(database: Database, campaign_id: str) -> list[PredictionRecord]:
    stmt = (
        select(Prediction)
        .where(Prediction.campaign_id == campaign_id)
        .order_by(Prediction.created_at.desc())
    )
    return await _fetch_all(database, stmt, PredictionRecord, "list predictions")


async def get_latest_prediction(
    database: Database, campaign_id: str, prediction_type: PredictionType,
) -> Optional[PredictionRecord]:
    stmt = (
        select(Prediction)
        .where(and_(Prediction.campaign_id == campaign_id, Prediction.prediction_type == prediction_type))
        .order_by(Prediction.created_at.desc())
    )
    return await _fetch_one(database, stmt, PredictionRecord, "get latest prediction")


# ══════════════════════════════════════════════════════════════════════
#  RECOMMENDATIONS
# ══════════════════════════════════════════════════════════════════════

async def create_recommendation(database: Database, data: RecommendationInsert) -> RecommendationInsert:
    return await _insert(database, Recommendation, data, "create recommendation")


async def list_campaign_recommendations(database: Database, campaign_id: str) -> list[RecommendationRecord]:
    stmt = (
        select(Recommendation)
        .where(Recommendation.campaign_id == campaign_id)
        .order_by(Recommendation.created_at.desc())
    )
    return await _fetch_all(database, stmt, RecommendationRecord, "list recommendations")


async def list_pending_recommendations(database: Database, campaign_id: str) -> list[RecommendationRecord]:
    """Pending only, highest priority first."""
    priority_rank = case(
        (Recommendation.priority == Priority.HIGH, 3),
        (Recommendation.priority == Priority.MEDIUM, 2),
        else_=1,
    )
    stmt = (
        select(Recommendation)
        .where(and_(
            Recommendation.campaign_id == campaign_id,
            Recommendation.status == RecommendationStatus.PENDING,
        ))
        .order_by(priority_rank.desc(), Recommendation.created_at.desc())
    )
    return await _fetch_all(database, stmt, RecommendationRecord, "list pending recommendations")


async def get_recommendation(database: Database, recommendation_id: str) -> Optional[RecommendationRecord]:
    stmt = select(Recommendation).where(Recommendation.id == recommendation_id)
    return await _fetch_one(database, stmt, RecommendationRecord, "get recommendation")


async def update_recommendation(database: Database, recommendation_id: str, updates: RecommendationUpdate) -> None:
    values = updates.model_dump(exclude_unset=True)
    values["updated_at"] = utcnow()
    stmt = update(Recommendation).where(Recommendation.id == recommendation_id).values(**values)
    await _execute(database, stmt, "update recommendation")


# ══════════════════════════════════════════════════════════════════════
#  ALERTS
# ══════════════════════════════════════════════════════════════════════

async def create_alert(database: Database, data: AlertInsert) -> AlertInsert:
    return await _insert(database, Alert, data, "create alert")


async def list_user_alerts(database: Database, user_id: str) -> list[AlertRecord]:
    stmt = select(Alert).where(Alert.user_id == user_id).order_by(Alert.created_at.desc())
    return await _fetch_all(database, stmt, AlertRecord, "list alerts")


async def list_unread_alerts(database: Database, user_id: str) -> list[AlertRecord]:
    stmt = (
        select(Alert)
        .where(and_(Alert.user_id == user_id, Alert.is_read.is_(False)))
        .order_by(Alert.created_at.desc())
    )
    return await _fetch_all(database, stmt, AlertRecord, "list unread alerts")


async def get_alert(database: Database, alert_id: str) -> Optional[AlertRecord]:
    return await _fetch_one(database, select(Alert).where(Alert.id == alert_id), AlertRecord, "get alert")


async def mark_alert_read(database: Database, alert_id: str) -> None:
    """Flip is_read once; an already-read alert keeps its original read_at."""
    stmt = (
        update(Alert)
        .where(and_(Alert.id == alert_id, Alert.is_read.is_(False)))
        .values(is_read=True, read_at=utcnow())
    )
    await _execute(database, stmt, "mark alert read")
