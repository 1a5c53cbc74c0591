"""
Alerts Router — the caller's notifications.
"""

from fastapi import APIRouter, Depends, HTTPException

from dashboard import repository
from dashboard.auth import CallerContext, require_caller
from dashboard.database import Database, get_database
from dashboard.schemas import AlertRecord

router = APIRouter()


@router.get("", response_model=list[AlertRecord])
async def list_alerts(
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    return await repository.list_user_alerts(database, caller.user_id)


@router.get("/unread", response_model=list[AlertRecord])
async def list_unread_alerts(
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    return await repository.list_unread_alerts(database, caller.user_id)


@router.post("/{alert_id}/read")
async def mark_as_read(
    alert_id: str,
    caller: CallerContext = Depends(require_caller),
    database: Database = Depends(get_database),
):
    """Idempotent; an already-read alert keeps its original read_at."""
    await repository.ensure_available(database)
    alert = await repository.get_alert(database, alert_id)
    if alert is None or alert.user_id != caller.user_id:
        raise HTTPException(status_code=404, detail="Alert not found")
    await repository.mark_alert_read(database, alert_id)
    return {"success": True}
