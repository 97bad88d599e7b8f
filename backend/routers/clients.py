# routers/clients.py — Client records
from fastapi import APIRouter, Depends

from routers.common import add_record_routes, get_registry
from services import ServiceRegistry

router = APIRouter(prefix="/api/v1/clients", tags=["Clients"])

add_record_routes(router, lambda registry: registry.clients)


@router.get("/{client_id:int}/projects")
async def list_client_projects(client_id: int, registry: ServiceRegistry = Depends(get_registry)):
    """Projects belonging to one client"""
    return await registry.clients.get_projects_by_client_id(client_id)
