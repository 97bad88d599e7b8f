# routers/projects.py — Project records
from fastapi import APIRouter, Depends

from routers.common import add_record_routes, get_registry
from services import ServiceRegistry

router = APIRouter(prefix="/api/v1/projects", tags=["Projects"])

add_record_routes(router, lambda registry: registry.projects)


@router.get("/by-client/{client_id:int}")
async def list_projects_by_client(client_id: int, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.projects.get_by_client_id(client_id)
