# services/issues.py — Issue tracker: issues, comments and mentions
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from filters import contains, equals
from models import Environment, IssuePriority, IssueStatus, IssueType, utcnow_iso
from schemas import COMMENT, ISSUE
from services.base import RecordService

ISSUE_TYPES = [
    {"id": IssueType.BUG.value, "name": "Bug", "icon": "Bug"},
    {"id": IssueType.TASK.value, "name": "Task", "icon": "CheckSquare"},
    {"id": IssueType.FEATURE_REQUEST.value, "name": "Feature Request", "icon": "Lightbulb"},
    {"id": IssueType.IMPROVEMENT.value, "name": "Improvement", "icon": "TrendingUp"},
]
PRIORITY_LEVELS = [p.value for p in IssuePriority]
STATUS_WORKFLOW = [s.value for s in IssueStatus]
ENVIRONMENTS = [e.value for e in Environment]

# Issue fields that search_issues accepts as exact-match filters
FILTERABLE_FIELDS = ("status_c", "priority_c", "type_c", "project_id_c")

_MENTION = re.compile(r"@(\w+)")


def extract_mentions(content: Optional[str]) -> List[str]:
    """Usernames mentioned as ``@name`` in ``content``, in order of appearance"""
    return _MENTION.findall(content or "")


class CommentService(RecordService):
    """Comments hang off an issue through ``task_id_c``."""
    schema = COMMENT
    plural = "comments"
    success_messages = {
        "create": "Comment added successfully",
        "update": "Comment updated successfully",
        "delete": "Comment deleted successfully",
    }

    def prepare_create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        payload = super().prepare_create(data)
        if "mentions_c" not in payload and payload.get("content_c"):
            mentions = extract_mentions(payload["content_c"])
            if mentions:
                payload["mentions_c"] = ",".join(mentions)
        return payload

    def prepare_update(self, record_id: int, data: Mapping[str, Any]) -> Dict[str, Any]:
        payload = super().prepare_update(record_id, data)
        payload["updated_at_c"] = utcnow_iso()
        payload["is_edited_c"] = True
        return payload

    async def get_by_issue_id(self, issue_id: Any) -> List[Dict[str, Any]]:
        return await self.find_by_reference("task_id_c", issue_id)


class IssueService(RecordService):
    schema = ISSUE
    plural = "issues"
    success_messages = {
        "create": "Issue created successfully",
        "update": "Issue updated successfully",
        "delete": "{count} issue(s) deleted successfully",
    }

    def __init__(self, store, notifier, comments: Optional[CommentService] = None):
        super().__init__(store, notifier)
        self.comments = comments or CommentService(store, notifier)

    def prepare_update(self, record_id: int, data: Mapping[str, Any]) -> Dict[str, Any]:
        payload = super().prepare_update(record_id, data)
        payload.setdefault("updated_at_c", utcnow_iso())
        return payload

    async def remove(self, ids: Union[Any, Iterable[Any]]) -> bool:
        """Delete one id or a list of ids; True only when all were deleted"""
        if isinstance(ids, (list, tuple, set)):
            return await self.delete_many(ids)
        return await self.delete_many([ids])

    async def search_issues(self, term: Optional[str] = None, filters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        where = []
        if term and term.strip():
            where.append(contains("title_c", term.strip()))
        criteria = self.schema.build_payload(filters or {})
        for name in FILTERABLE_FIELDS:
            if criteria.get(name):
                where.append(equals(name, criteria[name]))
        return await self.find(where=where)

    # --- comments ---

    async def get_comments_by_issue_id(self, issue_id: Any) -> List[Dict[str, Any]]:
        return await self.comments.get_by_issue_id(issue_id)

    async def create_comment(self, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.comments.create(data)

    async def update_comment(self, comment_id: Any, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.comments.update(comment_id, data)

    async def delete_comment(self, comment_id: Any) -> bool:
        return await self.comments.delete(comment_id)
