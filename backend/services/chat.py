# services/chat.py — Team and project chat
"""
Messages are stored records. Channels and reactions have no table yet, so
they go through repository interfaces; the in-memory implementations below
are process-local and start empty (channels start with the default set) on
every restart.
"""
import itertools
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from filters import equals, has_no_value
from models import ChannelType, utcnow_iso
from schemas import CHAT_MESSAGE, lookup_id, parse_int
from services.base import RecordService

DEFAULT_CHANNELS = (
    {"name": "Team Chat", "type": ChannelType.TEAM.value, "projectId": None, "memberCount": 5},
    {"name": "E-commerce Platform", "type": ChannelType.PROJECT.value, "projectId": 1, "memberCount": 3},
    {"name": "Mobile App Dev", "type": ChannelType.PROJECT.value, "projectId": 2, "memberCount": 2},
    {"name": "Marketing Website", "type": ChannelType.PROJECT.value, "projectId": 3, "memberCount": 2},
)


# ============================================================
# CHANNELS & REACTIONS
# ============================================================

class ChannelRepository(ABC):
    @abstractmethod
    async def list_by_type(self, channel_type: str) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def add_member(self, channel_id: int, member_id: int) -> bool:
        ...


class ReactionRepository(ABC):
    @abstractmethod
    async def add(self, message_id: int, emoji: str, user_id: int) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def remove(self, message_id: int, emoji: str, user_id: int) -> bool:
        ...

    @abstractmethod
    async def for_message(self, message_id: int) -> List[Dict[str, Any]]:
        """Reactions on one message grouped by emoji: {emoji, count, users}"""


class InMemoryChannelRepository(ChannelRepository):
    """Not persisted."""

    def __init__(self, seed=DEFAULT_CHANNELS):
        self._channels: List[Dict[str, Any]] = []
        self._ids = itertools.count(1)
        for channel in seed:
            self._channels.append({"Id": next(self._ids), "createdAt": utcnow_iso(), **channel})

    async def list_by_type(self, channel_type: str) -> List[Dict[str, Any]]:
        return [dict(c) for c in self._channels if c["type"] == channel_type]

    async def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        channel = {
            "Id": next(self._ids),
            "name": data.get("name"),
            "type": data.get("type") or ChannelType.TEAM.value,
            "projectId": lookup_id(data.get("projectId")),
            "description": data.get("description") or "",
            "createdAt": utcnow_iso(),
            "memberCount": 1,
        }
        self._channels.append(channel)
        return dict(channel)

    async def add_member(self, channel_id: int, member_id: int) -> bool:
        for channel in self._channels:
            if channel["Id"] == channel_id:
                channel["memberCount"] = (channel.get("memberCount") or 0) + 1
                return True
        return False


class InMemoryReactionRepository(ReactionRepository):
    """Not persisted."""

    def __init__(self):
        self._reactions: List[Dict[str, Any]] = []
        self._ids = itertools.count(1)

    async def add(self, message_id: int, emoji: str, user_id: int) -> Dict[str, Any]:
        reaction = {
            "Id": next(self._ids),
            "messageId": message_id,
            "emoji": emoji,
            "userId": user_id,
            "createdAt": utcnow_iso(),
        }
        self._reactions.append(reaction)
        return dict(reaction)

    async def remove(self, message_id: int, emoji: str, user_id: int) -> bool:
        for index, r in enumerate(self._reactions):
            if (r["messageId"], r["emoji"], r["userId"]) == (message_id, emoji, user_id):
                del self._reactions[index]
                return True
        return False

    async def for_message(self, message_id: int) -> List[Dict[str, Any]]:
        grouped: Dict[str, Dict[str, Any]] = {}
        for r in self._reactions:
            if r["messageId"] != message_id:
                continue
            entry = grouped.setdefault(r["emoji"], {"emoji": r["emoji"], "count": 0, "users": []})
            entry["count"] += 1
            entry["users"].append(r["userId"])
        return list(grouped.values())


# ============================================================
# MESSAGES
# ============================================================

class ChatService(RecordService):
    schema = CHAT_MESSAGE
    plural = "chat messages"
    raise_errors = True

    def __init__(
        self,
        store,
        notifier,
        channels: Optional[ChannelRepository] = None,
        reactions: Optional[ReactionRepository] = None,
    ):
        super().__init__(store, notifier)
        self.channels = channels or InMemoryChannelRepository()
        self.reactions = reactions or InMemoryReactionRepository()

    async def present(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Add the frontend field names alongside the stored ones"""
        return {
            **message,
            "content": message.get("content_c"),
            "authorId": message.get("author_id_c"),
            "projectId": message.get("project_id_c"),
            "channelType": message.get("channel_type_c"),
            "createdAt": message.get("created_at_c") or message.get("CreatedOn"),
            "updatedAt": message.get("updated_at_c") or message.get("ModifiedOn"),
            "reactions": await self.reactions.for_message(message.get("Id")),
            "threadCount": self.get_thread_count(message.get("Id")),
            "hasThread": self.has_thread(message.get("Id")),
        }

    async def find(self, *args, **kwargs) -> List[Dict[str, Any]]:
        return [await self.present(m) for m in await super().find(*args, **kwargs)]

    async def try_get_by_id(self, record_id: Any) -> Optional[Dict[str, Any]]:
        message = await super().try_get_by_id(record_id)
        return await self.present(message) if message else None

    def prepare_create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        payload = super().prepare_create(data)
        payload.setdefault("Name", f"Message from {payload.get('author_id_c')}")
        payload["updated_at_c"] = payload.get("created_at_c") or utcnow_iso()
        return payload

    def prepare_update(self, record_id: int, data: Mapping[str, Any]) -> Dict[str, Any]:
        # Only the text of a message can change
        payload = {"Id": record_id}
        built = self.schema.build_payload(data)
        if "content_c" in built:
            payload["content_c"] = built["content_c"]
            payload["updated_at_c"] = utcnow_iso()
        return payload

    async def create(self, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        message = await super().create(data)
        return await self.present(message) if message else None

    async def update(self, record_id: Any, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        message = await super().update(record_id, data)
        return await self.present(message) if message else None

    async def get_messages_by_channel(
        self,
        project_id: Any = None,
        channel_type: str = ChannelType.TEAM.value,
    ) -> List[Dict[str, Any]]:
        where = [equals("channel_type_c", channel_type)]
        reference = lookup_id(project_id)
        if channel_type == ChannelType.PROJECT.value and reference:
            where.append(equals("project_id_c", reference))
        elif channel_type == ChannelType.TEAM.value:
            where.append(has_no_value("project_id_c"))
        return await self.find(where=where)

    async def search_messages(
        self,
        query: str,
        channel_type: str = ChannelType.TEAM.value,
        project_id: Any = None,
    ) -> List[Dict[str, Any]]:
        needle = (query or "").lower()
        messages = await self.get_messages_by_channel(project_id, channel_type)
        return [m for m in messages if needle in (m.get("content") or "").lower()]

    # --- threads (no parent link on messages yet) ---

    async def get_thread_replies(self, parent_id: Any) -> List[Dict[str, Any]]:
        return []

    def get_thread_count(self, message_id: Any) -> int:
        return 0

    def has_thread(self, message_id: Any) -> bool:
        return False

    # --- channels ---

    async def get_channels_by_type(self, channel_type: str = ChannelType.TEAM.value) -> List[Dict[str, Any]]:
        return await self.channels.list_by_type(channel_type)

    async def create_channel(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        if not data.get("name"):
            raise ValueError("Channel name is required")
        return await self.channels.create(data)

    async def add_member_to_channel(self, channel_id: Any, member_id: Any) -> bool:
        return await self.channels.add_member(parse_int(channel_id), parse_int(member_id))

    # --- reactions ---

    async def add_reaction(self, message_id: Any, emoji: str, user_id: Any) -> Dict[str, Any]:
        return await self.reactions.add(parse_int(message_id), emoji, parse_int(user_id))

    async def remove_reaction(self, message_id: Any, emoji: str, user_id: Any) -> bool:
        return await self.reactions.remove(parse_int(message_id), emoji, parse_int(user_id))

    async def get_message_reactions(self, message_id: Any) -> List[Dict[str, Any]]:
        return await self.reactions.for_message(parse_int(message_id))
