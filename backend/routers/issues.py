# routers/issues.py — Issue tracker and issue comments
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from routers.common import IdList, RecordIn, add_record_routes, get_registry, require_deleted
from services import ServiceRegistry
from services.issues import ENVIRONMENTS, ISSUE_TYPES, PRIORITY_LEVELS, STATUS_WORKFLOW, extract_mentions

router = APIRouter(prefix="/api/v1/issues", tags=["Issues"])

add_record_routes(router, lambda registry: registry.issues)


class MentionsIn(BaseModel):
    content: str = ""


# ============================================================
# ISSUES
# ============================================================

@router.get("/options")
async def issue_options():
    """Types, priorities, statuses and environments an issue can take"""
    return {
        "types": ISSUE_TYPES,
        "priorities": PRIORITY_LEVELS,
        "statuses": STATUS_WORKFLOW,
        "environments": ENVIRONMENTS,
    }


@router.get("/search")
async def search_issues(
    q: Optional[str] = Query(None, max_length=200),
    status: Optional[str] = Query(None),
    priority: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    project_id: Optional[int] = Query(None, ge=1),
    registry: ServiceRegistry = Depends(get_registry),
):
    filters = {"status_c": status, "priority_c": priority, "type_c": type, "project_id_c": project_id}
    return await registry.issues.search_issues(q, {k: v for k, v in filters.items() if v is not None})


@router.post("/remove")
async def remove_issues(body: IdList, registry: ServiceRegistry = Depends(get_registry)):
    """Delete several issues at once"""
    return await require_deleted(registry.issues, body.ids)


@router.post("/mentions")
async def mentions(body: MentionsIn):
    return {"mentions": extract_mentions(body.content)}


# ============================================================
# COMMENTS
# ============================================================

@router.get("/{issue_id:int}/comments")
async def list_comments(issue_id: int, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.issues.get_comments_by_issue_id(issue_id)


@router.post("/{issue_id:int}/comments", status_code=201)
async def create_comment(issue_id: int, body: RecordIn, registry: ServiceRegistry = Depends(get_registry)):
    data = body.to_data()
    data["task_id_c"] = issue_id
    comment = await registry.issues.create_comment(data)
    if comment is None:
        raise HTTPException(422, "Unable to add comment")
    return comment


@router.patch("/comments/{comment_id:int}")
async def update_comment(comment_id: int, body: RecordIn, registry: ServiceRegistry = Depends(get_registry)):
    comment = await registry.issues.update_comment(comment_id, body.to_data())
    if comment is None:
        raise HTTPException(404, "Comment not found")
    return comment


@router.delete("/comments/{comment_id:int}")
async def delete_comment(comment_id: int, registry: ServiceRegistry = Depends(get_registry)):
    return await require_deleted(registry.comments, [comment_id])
