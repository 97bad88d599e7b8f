# routers/notifications.py — Pending user-facing toasts
from typing import Optional

from fastapi import APIRouter, Depends, Query

from notifications import NotificationCenter, ToastLevel
from routers.common import get_registry
from services import ServiceRegistry

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


def get_notification_center(registry: ServiceRegistry = Depends(get_registry)) -> NotificationCenter:
    return registry.notifier


# ============================================================
# LIST
# ============================================================

@router.get("")
async def list_notifications(
    level: Optional[ToastLevel] = Query(None),
    limit: int = Query(default=50, ge=1, le=500),
    center: NotificationCenter = Depends(get_notification_center),
):
    return [t.to_dict() for t in center.pending(level, limit)]


@router.post("/drain")
async def drain_notifications(center: NotificationCenter = Depends(get_notification_center)):
    """Return every pending toast and forget them"""
    return [t.to_dict() for t in center.drain()]


@router.delete("")
async def clear_notifications(center: NotificationCenter = Depends(get_notification_center)):
    return {"cleared": center.clear()}
