# routers/milestones.py — Project milestones
from fastapi import APIRouter, Depends, HTTPException, Query

from routers.common import add_record_routes, get_registry
from services import ServiceRegistry

router = APIRouter(prefix="/api/v1/milestones", tags=["Milestones"])

add_record_routes(router, lambda registry: registry.milestones)


@router.get("/upcoming")
async def list_upcoming_milestones(
    days: int = Query(default=14, ge=0, le=365),
    registry: ServiceRegistry = Depends(get_registry),
):
    return await registry.milestones.get_upcoming(days)


@router.get("/by-project/{project_id:int}")
async def list_milestones_by_project(project_id: int, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.milestones.get_by_project_id(project_id)


@router.post("/{milestone_id:int}/complete")
async def complete_milestone(milestone_id: int, registry: ServiceRegistry = Depends(get_registry)):
    milestone = await registry.milestones.mark_complete(milestone_id)
    if milestone is None:
        raise HTTPException(404, "Milestone not found")
    return milestone
