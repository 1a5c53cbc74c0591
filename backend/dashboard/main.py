"""
Campaign Dashboard — FastAPI Backend
Campaigns, metrics, predictions, recommendations and alerts for marketing platforms.
Persisted to PostgreSQL; the API stays up (degraded) when the database is not.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dashboard.auth import require_caller
from dashboard.config import get_settings
from dashboard.database import Database
from dashboard.repository import StoreUnavailableError
from dashboard.routers import alerts, auth, campaigns, integrations, predictions, recommendations
from dashboard.services.recommendation_service import InvalidTransitionError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Campaign Dashboard...")
    app.state.database = Database(settings.database_url)
    try:
        if await app.state.database.create_all():
            logger.info("Database initialized — all tables ready.")
        else:
            logger.warning("Database not available at startup; will retry on first use.")
    except Exception as e:
        logger.error(f"Startup failed (DB/init): {e}", exc_info=True)
        # Still yield so app can serve /api/health (degraded)
    yield
    logger.info("Shutting down...")
    await app.state.database.dispose()


app = FastAPI(
    title="Campaign Dashboard",
    description="Campaign management, performance predictions and optimization recommendations",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error mapping ─────────────────────────────────────────────────────

@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.warning(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"detail": "Database not available"})


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


# ── Auth (me/logout public) ───────────────────────────────────────────
app.include_router(auth.router, prefix="/api")

# ── Register Routers (all require a session) ──────────────────────────
_auth = [Depends(require_caller)]
app.include_router(campaigns.router, prefix="/api/campaigns", tags=["Campaigns"], dependencies=_auth)
app.include_router(integrations.router, prefix="/api/integrations", tags=["Integrations"], dependencies=_auth)
app.include_router(predictions.router, prefix="/api/predictions", tags=["Predictions"], dependencies=_auth)
app.include_router(recommendations.router, prefix="/api/recommendations", tags=["Recommendations"], dependencies=_auth)
app.include_router(alerts.router, prefix="/api/alerts", tags=["Alerts"], dependencies=_auth)


@app.get("/api/health")
async def health_check(request: Request):
    db_ok = await request.app.state.database.check_connection()
    return {
        "status": "healthy" if db_ok else "degraded",
        "service": "Campaign Dashboard",
        "database": "connected" if db_ok else "disconnected",
    }
