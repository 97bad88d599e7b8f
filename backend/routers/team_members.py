# routers/team_members.py — Team directory and workload
from fastapi import APIRouter, Depends, Query

from routers.common import add_record_routes, get_registry
from services import ServiceRegistry

router = APIRouter(prefix="/api/v1/team-members", tags=["Team"])

add_record_routes(router, lambda registry: registry.team_members)


@router.get("/search")
async def search_team_members(
    q: str = Query(default="", max_length=200),
    registry: ServiceRegistry = Depends(get_registry),
):
    return await registry.team_members.search(q)


@router.get("/workload")
async def workload_stats(registry: ServiceRegistry = Depends(get_registry)):
    return await registry.team_members.get_workload_stats()


@router.get("/by-status/{status}")
async def list_by_status(status: str, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.team_members.get_by_status(status)


@router.get("/by-department/{department}")
async def list_by_department(department: str, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.team_members.get_by_department(department)
