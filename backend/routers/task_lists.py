# routers/task_lists.py — Task lists
from fastapi import APIRouter, Depends

from routers.common import add_record_routes, get_registry
from services import ServiceRegistry

router = APIRouter(prefix="/api/v1/task-lists", tags=["Task Lists"])

add_record_routes(router, lambda registry: registry.task_lists)


@router.get("/by-milestone/{milestone_id:int}")
async def list_by_milestone(milestone_id: int, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.task_lists.get_by_milestone_id(milestone_id)


@router.get("/by-project/{project_id:int}")
async def list_by_project(project_id: int, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.task_lists.get_by_project_id(project_id)
