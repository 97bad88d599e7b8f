# routers/tasks.py — Tasks and status transitions
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from models import TaskStatus
from routers.common import add_record_routes, get_registry
from services import ServiceRegistry

router = APIRouter(prefix="/api/v1/tasks", tags=["Tasks"])

add_record_routes(router, lambda registry: registry.tasks)

TASK_STATUS_PATTERN = "^(" + "|".join(s.value for s in TaskStatus) + ")$"


class StatusUpdate(BaseModel):
    status: str = Field(..., pattern=TASK_STATUS_PATTERN)


@router.get("/by-project/{project_id:int}")
async def list_tasks_by_project(project_id: int, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.tasks.get_by_project_id(project_id)


@router.post("/{task_id:int}/complete")
async def complete_task(task_id: int, registry: ServiceRegistry = Depends(get_registry)):
    task = await registry.tasks.mark_complete(task_id)
    if task is None:
        raise HTTPException(404, "Task not found")
    return task


@router.put("/{task_id:int}/status")
async def update_task_status(task_id: int, body: StatusUpdate, registry: ServiceRegistry = Depends(get_registry)):
    """Move a task to a new status; Done and Completed also mark it complete"""
    task = await registry.tasks.update_status(task_id, body.status)
    if task is None:
        raise HTTPException(404, "Task not found")
    return task
