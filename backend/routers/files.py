# routers/files.py — File attachments
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from routers.common import add_record_routes, get_registry
from services import ServiceRegistry, UploadRequest
from services.files import can_preview, format_file_size, get_file_icon

router = APIRouter(prefix="/api/v1/files", tags=["Files"])

add_record_routes(router, lambda registry: registry.files, operations=("list", "get", "delete"))


class UploadIn(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    uploaded_by: int = Field(..., ge=1)
    file_size: int = Field(default=0, ge=0)
    file_type: Optional[str] = Field(None, max_length=200)
    task_id: Optional[int] = Field(None, ge=1)
    project_id: Optional[int] = Field(None, ge=1)
    comment_id: Optional[int] = Field(None, ge=1)


@router.post("/upload", status_code=201)
async def upload_file(body: UploadIn, registry: ServiceRegistry = Depends(get_registry)):
    """Register an uploaded file; repeat uploads of a name become new versions"""
    created = await registry.files.upload(UploadRequest(**body.model_dump()))
    if created is None:
        raise HTTPException(422, "Unable to upload file")
    return created


@router.get("/versions")
async def list_versions(
    file_name: str = Query(..., min_length=1),
    task_id: Optional[int] = Query(None, ge=1),
    project_id: Optional[int] = Query(None, ge=1),
    registry: ServiceRegistry = Depends(get_registry),
):
    return await registry.files.get_versions(file_name, task_id, project_id)


@router.get("/describe")
async def describe_file_type(file_type: str = Query(...), size: int = Query(default=0, ge=0)):
    return {
        "file_type": file_type,
        "can_preview": can_preview(file_type),
        "icon": get_file_icon(file_type),
        "size": format_file_size(size),
    }


@router.get("/by-task/{task_id:int}")
async def list_by_task(task_id: int, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.files.get_by_task_id(task_id)


@router.get("/by-project/{project_id:int}")
async def list_by_project(project_id: int, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.files.get_by_project_id(project_id)


@router.get("/by-comment/{comment_id:int}")
async def list_by_comment(comment_id: int, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.files.get_by_comment_id(comment_id)
