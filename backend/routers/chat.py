# routers/chat.py — Team and project chat, channels and reactions
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from routers.common import add_record_routes, get_registry
from services import ServiceRegistry

router = APIRouter(prefix="/api/v1/chat", tags=["Chat"])

CHANNEL_TYPE_PATTERN = r"^(team|project)$"


class ChannelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(default="team", pattern=CHANNEL_TYPE_PATTERN)
    projectId: Optional[int] = Field(None, ge=1)
    description: Optional[str] = None


class MemberAdd(BaseModel):
    member_id: int = Field(..., ge=1)


class ReactionIn(BaseModel):
    emoji: str = Field(..., min_length=1, max_length=32)
    user_id: int = Field(..., ge=1)


# ============================================================
# CHANNELS
# ============================================================

@router.get("/channels")
async def list_channels(
    type: str = Query(default="team", pattern=CHANNEL_TYPE_PATTERN),
    registry: ServiceRegistry = Depends(get_registry),
):
    return await registry.chat.get_channels_by_type(type)


@router.post("/channels", status_code=201)
async def create_channel(body: ChannelCreate, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.chat.create_channel(body.model_dump())


@router.post("/channels/{channel_id:int}/members")
async def add_channel_member(channel_id: int, body: MemberAdd, registry: ServiceRegistry = Depends(get_registry)):
    if not await registry.chat.add_member_to_channel(channel_id, body.member_id):
        raise HTTPException(404, "Channel not found")
    return {"status": "added", "channel_id": channel_id, "member_id": body.member_id}


# ============================================================
# MESSAGES
# ============================================================

@router.get("/messages/channel")
async def list_channel_messages(
    channel_type: str = Query(default="team", pattern=CHANNEL_TYPE_PATTERN),
    project_id: Optional[int] = Query(None, ge=1),
    registry: ServiceRegistry = Depends(get_registry),
):
    return await registry.chat.get_messages_by_channel(project_id, channel_type)


@router.get("/messages/search")
async def search_messages(
    q: str = Query(..., min_length=1, max_length=200),
    channel_type: str = Query(default="team", pattern=CHANNEL_TYPE_PATTERN),
    project_id: Optional[int] = Query(None, ge=1),
    registry: ServiceRegistry = Depends(get_registry),
):
    return await registry.chat.search_messages(q, channel_type, project_id)


@router.get("/messages/{message_id:int}/thread")
async def list_thread(message_id: int, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.chat.get_thread_replies(message_id)


@router.get("/messages/{message_id:int}/reactions")
async def list_reactions(message_id: int, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.chat.get_message_reactions(message_id)


@router.post("/messages/{message_id:int}/reactions", status_code=201)
async def add_reaction(message_id: int, body: ReactionIn, registry: ServiceRegistry = Depends(get_registry)):
    return await registry.chat.add_reaction(message_id, body.emoji, body.user_id)


@router.delete("/messages/{message_id:int}/reactions")
async def remove_reaction(
    message_id: int,
    emoji: str = Query(..., min_length=1),
    user_id: int = Query(..., ge=1),
    registry: ServiceRegistry = Depends(get_registry),
):
    removed = await registry.chat.remove_reaction(message_id, emoji, user_id)
    return {"removed": removed}


messages = APIRouter(prefix="/messages")
add_record_routes(messages, lambda registry: registry.chat)
router.include_router(messages)
