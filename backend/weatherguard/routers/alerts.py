"""Weather alerts router."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from weatherguard.database import get_db
from weatherguard.dependencies import get_store
from weatherguard.models import WeatherAlert
from weatherguard.services.booking_store import BookingStore

router = APIRouter()


def _alert_dict(alert: WeatherAlert) -> dict:
    return {
        "id": str(alert.id),
        "booking_id": str(alert.booking_id),
        "severity": alert.severity.value,
        "message": alert.message,
        "location": alert.location,
        "student_name": alert.student_name,
        "original_date": alert.original_date.isoformat(),
        "timestamp": alert.created_at.isoformat() if alert.created_at else None,
        "dismissed_at": alert.dismissed_at.isoformat() if alert.dismissed_at else None,
    }


@router.get("")
async def list_alerts(
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_store),
):
    """Undismissed alerts, newest first."""
    alerts = await store.list_active_alerts(db)
    return {"alerts": [_alert_dict(a) for a in alerts], "count": len(alerts)}


@router.post("/{alert_id}/dismiss")
async def dismiss_alert(
    alert_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: BookingStore = Depends(get_store),
):
    return _alert_dict(await store.dismiss_alert(db, alert_id))
