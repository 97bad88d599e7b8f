# routers/dashboard.py — Dashboard metrics
from fastapi import APIRouter, Depends

from routers.common import get_registry
from services import ServiceRegistry

router = APIRouter(prefix="/api/v1/dashboard", tags=["Dashboard"])


@router.get("/stats")
async def dashboard_stats(registry: ServiceRegistry = Depends(get_registry)):
    """Active clients, active projects, tasks due today and overdue tasks"""
    return await registry.dashboard.get_stats()
