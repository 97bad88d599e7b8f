# routers/common.py — Shared router dependencies and the standard record routes
from typing import Any, Callable, Dict, Iterable, List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from errors import RecordNotFoundError
from services import ServiceRegistry
from services.base import RecordService

CRUD_OPERATIONS = ("list", "get", "create", "update", "delete")


def get_registry(request: Request) -> ServiceRegistry:
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(503, "Record store is not initialised")
    return registry


# --- Schemas ---

class RecordIn(BaseModel):
    """Record fields by storage name (``status_c``) or alias (``status``).

    Keys a table does not accept are ignored by the service.
    """
    model_config = ConfigDict(extra="allow")

    def to_data(self) -> Dict[str, Any]:
        return self.model_dump()


class IdList(BaseModel):
    ids: List[int] = Field(..., min_length=1)


class DeleteOut(BaseModel):
    status: str = "deleted"
    ids: List[int]


async def require_deleted(service: RecordService, record_ids: List[int]) -> dict:
    """Delete and translate a failed delete into 404 (missing) or 422 (rejected)"""
    if len(record_ids) == 1:
        deleted = await service.delete(record_ids[0])
    else:
        deleted = await service.delete_many(record_ids)
    if deleted:
        return DeleteOut(ids=record_ids).model_dump()
    for record_id in record_ids:
        if await service.try_get_by_id(record_id) is None:
            raise HTTPException(404, f"{service.label} not found")
    raise HTTPException(422, f"Unable to delete {service.plural}")


def add_record_routes(
    router: APIRouter,
    service_for: Callable[[ServiceRegistry], RecordService],
    operations: Iterable[str] = CRUD_OPERATIONS,
):
    """Register list/get/create/update/delete on ``router`` for one service.

    Ids are declared with the ``int`` path convertor so named sub-routes such
    as ``/search`` never collide with ``/{record_id}``.
    """
    operations = set(operations)

    def service_dep(registry: ServiceRegistry = Depends(get_registry)) -> RecordService:
        return service_for(registry)

    if "list" in operations:
        @router.get("")
        async def list_records(service: RecordService = Depends(service_dep)):
            return await service.get_all()

    if "get" in operations:
        @router.get("/{record_id:int}")
        async def get_record(record_id: int, service: RecordService = Depends(service_dep)):
            try:
                return await service.get_by_id(record_id)
            except RecordNotFoundError as e:
                raise HTTPException(404, str(e))

    if "create" in operations:
        @router.post("", status_code=201)
        async def create_record(body: RecordIn, service: RecordService = Depends(service_dep)):
            created = await service.create(body.to_data())
            if created is None:
                raise HTTPException(422, f"Unable to create {service.label.lower()}")
            return created

    if "update" in operations:
        @router.patch("/{record_id:int}")
        async def update_record(record_id: int, body: RecordIn, service: RecordService = Depends(service_dep)):
            updated = await service.update(record_id, body.to_data())
            if updated is None:
                if await service.try_get_by_id(record_id) is None:
                    raise HTTPException(404, f"{service.label} not found")
                raise HTTPException(422, f"Unable to update {service.label.lower()}")
            return updated

    if "delete" in operations:
        @router.delete("/{record_id:int}")
        async def delete_record(record_id: int, service: RecordService = Depends(service_dep)):
            return await require_deleted(service, [record_id])

    return service_dep
