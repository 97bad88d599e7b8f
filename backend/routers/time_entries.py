# routers/time_entries.py — Time tracking
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from routers.common import IdList, RecordIn, add_record_routes, get_registry, require_deleted
from services import ServiceRegistry

router = APIRouter(prefix="/api/v1/time-entries", tags=["Time Tracking"])

add_record_routes(router, lambda registry: registry.time_entries)

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


@router.get("/search")
async def search_time_entries(
    q: str = Query(default="", max_length=200),
    registry: ServiceRegistry = Depends(get_registry),
):
    return await registry.time_entries.search_entries(q)


@router.get("/summary")
async def time_summary(registry: ServiceRegistry = Depends(get_registry)):
    """Hours per project across all entries"""
    return await registry.time_entries.get_time_summary_by_project()


@router.get("/range")
async def list_by_date_range(
    start_date: str = Query(..., pattern=DATE_PATTERN),
    end_date: str = Query(..., pattern=DATE_PATTERN),
    registry: ServiceRegistry = Depends(get_registry),
):
    return await registry.time_entries.get_times_by_date_range(start_date, end_date)


@router.get("/by-project/{project_id:int}")
async def list_by_project(
    project_id: int,
    start_date: Optional[str] = Query(None, pattern=DATE_PATTERN),
    end_date: Optional[str] = Query(None, pattern=DATE_PATTERN),
    registry: ServiceRegistry = Depends(get_registry),
):
    if start_date or end_date:
        return await registry.time_entries.get_times_by_project(project_id, start_date, end_date)
    return await registry.time_entries.get_by_project_id(project_id)


@router.get("/by-task/{task_id:int}")
async def list_by_task(task_id: int, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.time_entries.get_by_task_id(task_id)


@router.post("/timer", status_code=201)
async def create_from_timer(body: RecordIn, registry: ServiceRegistry = Depends(get_registry)):
    """Record the time captured by a stopped timer"""
    entry = await registry.time_entries.create_from_timer(body.to_data())
    if entry is None:
        raise HTTPException(422, "Unable to create time entry")
    return entry


@router.post("/bulk-delete")
async def bulk_delete(body: IdList, registry: ServiceRegistry = Depends(get_registry)):
    return await require_deleted(registry.time_entries, body.ids)
