# schemas.py — Per-entity table schemas, field allow-lists and write coercions
"""
Each remote table is described once: the fields requested on reads, which of
them may be written, the convenience aliases callers may use instead of the
storage name, the coercion applied before a write and the default used when a
create leaves a field out.

Precedence when a payload carries both spellings: the storage name wins.
Keys that are neither a storage name nor an alias of a writable field are
dropped.
"""
import logging
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from models import (
    ChannelType, ClientStatus, IssuePriority, IssueStatus, IssueType, Environment,
    MilestoneStatus, ProjectStatus, TaskPriority, TaskStatus, today_iso, utcnow_iso,
)
from record_store import OrderBy, PagingInfo

logger = logging.getLogger("business-manager.schemas")

TEXT = "text"
INTEGER = "integer"
NUMBER = "number"
BOOLEAN = "boolean"
DATE = "date"
DATETIME = "datetime"
LOOKUP = "lookup"
SYSTEM = "system"

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


# ============================================================
# COERCIONS
# ============================================================

def parse_int(value: Any) -> Optional[int]:
    """Leading-integer parse: "42" → 42, "12.9" → 12, "abc" → None"""
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and value not in (float("inf"), float("-inf")) else None
    match = _INT_PREFIX.match(str(value))
    return int(match.group(1)) if match else None


def parse_float(value: Any) -> Optional[float]:
    """Leading-number parse: "1.5h" → 1.5, "" → None"""
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    match = _FLOAT_PREFIX.match(str(value))
    return float(match.group(1)) if match else None


def round_half_up(value: float, digits: int = 0):
    """Round with halves going up: 2.5 → 3, 0.125 → 0.13 (digits=2).

    Returns an int when ``digits`` is 0.
    """
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def lookup_id(value: Any) -> Optional[int]:
    """Normalise a foreign-key value to a raw integer id.

    Accepts a raw id, a numeric string, or a lookup object such as
    ``{"Id": 7, "Name": "Acme"}``. Empty values become None.
    """
    if isinstance(value, Mapping):
        value = value.get("Id", value.get("id"))
    if value is None or value == "" or value is False:
        return None
    parsed = parse_int(value)
    return parsed or None


def _coerce(kind: str, value: Any) -> Any:
    if kind == TEXT:
        return "" if value is None else str(value)
    if kind == INTEGER:
        return parse_int(value) or 0
    if kind == NUMBER:
        return parse_float(value) or 0
    if kind == BOOLEAN:
        return bool(value)
    if kind == LOOKUP:
        return lookup_id(value)
    return value


# ============================================================
# SCHEMA TYPES
# ============================================================

@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: str = TEXT
    aliases: Tuple[str, ...] = ()
    writable: bool = True
    default: Any = None
    choices: Optional[Tuple[str, ...]] = None

    def has_default(self) -> bool:
        return self.default is not None

    def default_value(self) -> Any:
        return self.default() if callable(self.default) else self.default

    def coerce(self, value: Any) -> Any:
        return _coerce(self.kind, value)


@dataclass(frozen=True)
class EntitySchema:
    table: str
    label: str
    fields: Tuple[FieldSpec, ...]
    default_order: Tuple[OrderBy, ...] = ()
    default_paging: Optional[PagingInfo] = None
    search_fields: Tuple[str, ...] = ()
    _index: Dict[str, FieldSpec] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        self._index.update({f.name: f for f in self.fields})

    @property
    def read_fields(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def writable_fields(self) -> List[FieldSpec]:
        return [f for f in self.fields if f.writable]

    def get(self, name: str) -> Optional[FieldSpec]:
        return self._index.get(name)

    def accepted_keys(self) -> set:
        keys = set()
        for spec in self.writable_fields:
            keys.add(spec.name)
            keys.update(spec.aliases)
        return keys

    def build_payload(self, data: Mapping[str, Any], for_create: bool = False) -> Dict[str, Any]:
        """Map a frontend- or storage-shaped mapping onto the write allow-list.

        Absent fields are left out unless ``for_create`` and the field has a
        default. Present fields (including explicit None) are coerced.
        """
        payload: Dict[str, Any] = {}
        for spec in self.writable_fields:
            present, value = _pick(data, spec)
            if present:
                payload[spec.name] = spec.coerce(value)
            elif for_create and spec.has_default():
                payload[spec.name] = spec.default_value()

        dropped = sorted(set(data) - self.accepted_keys() - {"Id"})
        if dropped:
            logger.debug(f"{self.table}: dropped fields outside the allow-list: {', '.join(dropped)}")
        return payload


def _pick(data: Mapping[str, Any], spec: FieldSpec) -> Tuple[bool, Any]:
    if spec.name in data:
        return True, data[spec.name]
    for alias in spec.aliases:
        if alias in data:
            return True, data[alias]
    return False, None


def _text(name: str, *aliases: str, default: Any = None, choices: Iterable[str] = None) -> FieldSpec:
    return FieldSpec(name, TEXT, tuple(aliases), default=default,
                     choices=tuple(choices) if choices else None)


def _none():
    return None


def _lookup(name: str, *aliases: str) -> FieldSpec:
    """Foreign key that is written as null when a create leaves it out"""
    return FieldSpec(name, LOOKUP, tuple(aliases), default=_none)


def _values(enum_cls) -> Tuple[str, ...]:
    return tuple(e.value for e in enum_cls)


NAME = _text("Name", "name")
TAGS = _text("Tags", "tags", default="")
CREATED_AT = FieldSpec("created_at_c", DATETIME, default=utcnow_iso)
UPDATED_AT = FieldSpec("updated_at_c", DATETIME, ("updatedAt",))
SYSTEM_FIELDS = tuple(
    FieldSpec(n, SYSTEM, writable=False)
    for n in ("Owner", "CreatedOn", "CreatedBy", "ModifiedOn", "ModifiedBy")
)


# ============================================================
# ENTITY SCHEMAS
# ============================================================

CLIENT = EntitySchema(
    table="client_c",
    label="Client",
    fields=(
        NAME,
        TAGS,
        _text("company_c", "company", default=""),
        _text("email_c", "email", default=""),
        _text("phone_c", "phone", default=""),
        _text("website_c", "website", default=""),
        _text("address_c", "address", default=""),
        _text("industry_c", "industry", default=""),
        _text("status_c", "status", default=ClientStatus.ACTIVE.value, choices=_values(ClientStatus)),
        CREATED_AT,
    ),
    default_order=(OrderBy(field_name="Name"),),
    search_fields=("Name", "company_c", "email_c", "industry_c"),
)

PROJECT = EntitySchema(
    table="project_c",
    label="Project",
    fields=(
        NAME,
        TAGS,
        _text("description_c", "description", default=""),
        _text("status_c", "status", default=ProjectStatus.PLANNING.value, choices=_values(ProjectStatus)),
        FieldSpec("deadline_c", DATE, ("deadline",), default=""),
        _text("deliverables_c", "deliverables", default=""),
        CREATED_AT,
        FieldSpec("chat_enabled_c", BOOLEAN, ("chatEnabled",), default=True),
        _lookup("client_id_c", "clientId"),
    ),
    default_order=(OrderBy(field_name="Name"),),
    search_fields=("Name", "description_c"),
)

TASK = EntitySchema(
    table="task_c",
    label="Task",
    fields=(
        FieldSpec("Name", TEXT, ("title", "name")),
        TAGS,
        _text("description_c", "description", default=""),
        FieldSpec("completed_c", BOOLEAN, ("completed",), default=False),
        _text("priority_c", "priority", default=TaskPriority.MEDIUM.value, choices=_values(TaskPriority)),
        FieldSpec("start_date_c", DATE, ("startDate",), default=today_iso),
        FieldSpec("due_date_c", DATE, ("dueDate",), default=""),
        CREATED_AT,
        _text("status_c", "status", default=TaskStatus.TODO.value, choices=_values(TaskStatus)),
        _lookup("project_id_c", "projectId"),
    ),
    search_fields=("Name", "description_c"),
)

TASK_LIST = EntitySchema(
    table="task_list_c",
    label="Task list",
    fields=(
        NAME,
        TAGS,
        _text("description_c", "description", default=""),
        _text("tasks_c", "tasks", default=""),
        CREATED_AT,
        _lookup("milestone_id_c", "milestoneId"),
        _lookup("project_id_c", "projectId"),
    ),
)

MILESTONE = EntitySchema(
    table="milestone_c",
    label="Milestone",
    fields=(
        NAME,
        TAGS,
        _text("description_c", "description", default=""),
        FieldSpec("due_date_c", DATE, ("dueDate",), default=""),
        _text("status_c", "status", default=MilestoneStatus.NOT_STARTED.value, choices=_values(MilestoneStatus)),
        FieldSpec("completed_c", BOOLEAN, ("completed",), default=False),
        CREATED_AT,
        _lookup("project_id_c", "projectId"),
    ),
    default_order=(OrderBy(field_name="due_date_c"),),
)

TEAM_MEMBER = EntitySchema(
    table="team_member_c",
    label="Team member",
    fields=(
        NAME,
        _text("email_c", "email"),
        _text("role_c", "role"),
        _text("department_c", "department"),
        _text("status_c", "status"),
        _text("avatar_c", "avatar"),
        _text("phone_c", "phone"),
        _text("location_c", "location"),
        FieldSpec("start_date_c", DATE, ("startDate",)),
        _text("skills_c", "skills"),
        FieldSpec("current_workload_c", INTEGER, ("currentWorkload",)),
        FieldSpec("max_capacity_c", INTEGER, ("maxCapacity",)),
        FieldSpec("completed_tasks_this_month_c", INTEGER, ("completedTasksThisMonth",)),
        FieldSpec("total_tasks_this_month_c", INTEGER, ("totalTasksThisMonth",)),
        FieldSpec("average_task_completion_time_c", NUMBER, ("averageTaskCompletionTime",)),
        _text("Tags", "tags"),
    ),
    default_order=(OrderBy(field_name="Name"),),
    search_fields=("Name", "email_c", "role_c", "department_c"),
)

TIME_ENTRY = EntitySchema(
    table="time_entry_c",
    label="Time entry",
    fields=(
        _text("Name", default="Time Entry"),
        TAGS,
        _text("description_c", "description", default=""),
        FieldSpec("date_c", DATE, ("date",), default=today_iso),
        FieldSpec("duration_c", NUMBER, ("duration",), default=0.0),
        CREATED_AT,
        _lookup("project_id_c", "projectId"),
        _lookup("task_id_c", "taskId"),
    ),
    default_order=(OrderBy(field_name="date_c", sort_type="DESC"),),
    search_fields=("description_c",),
)

ISSUE = EntitySchema(
    table="issue_c",
    label="Issue",
    fields=(
        _text("Name"),
        _text("Tags"),
        *SYSTEM_FIELDS,
        _text("title_c", "title"),
        _text("type_c", "type", choices=_values(IssueType)),
        _text("description_c", "description"),
        _text("priority_c", "priority", choices=_values(IssuePriority)),
        _text("status_c", "status", choices=_values(IssueStatus)),
        _text("reporter_c", "reporter"),
        _text("assignee_c", "assignee"),
        _text("environment_c", "environment", choices=_values(Environment)),
        FieldSpec("due_date_c", DATE, ("dueDate",)),
        CREATED_AT,
        UPDATED_AT,
        FieldSpec("project_id_c", LOOKUP, ("projectId",)),
    ),
    default_order=(OrderBy(field_name="CreatedOn", sort_type="DESC"),),
    search_fields=("title_c",),
)

COMMENT = EntitySchema(
    table="comment_c",
    label="Comment",
    fields=(
        _text("Name"),
        _text("Tags"),
        FieldSpec("author_id_c", LOOKUP, ("authorId",)),
        _text("content_c", "content"),
        CREATED_AT,
        UPDATED_AT,
        _text("mentions_c", "mentions"),
        FieldSpec("is_edited_c", BOOLEAN, ("isEdited",), default=False),
        FieldSpec("task_id_c", LOOKUP, ("taskId", "issueId")),
        FieldSpec("parent_id_c", LOOKUP, ("parentId",)),
    ),
    default_order=(OrderBy(field_name="created_at_c"),),
)

FILE_ATTACHMENT = EntitySchema(
    table="file_attachment_c",
    label="File",
    fields=(
        _text("Name"),
        TAGS,
        _text("file_name_c", "fileName"),
        FieldSpec("file_size_c", INTEGER, ("fileSize",), default=0),
        _text("file_type_c", "fileType", default="application/octet-stream"),
        FieldSpec("uploaded_by_c", LOOKUP, ("uploadedBy",)),
        FieldSpec("uploaded_at_c", DATETIME, ("uploadedAt",), default=utcnow_iso),
        FieldSpec("version_c", INTEGER, ("version",), default=1),
        FieldSpec("is_latest_c", BOOLEAN, ("isLatest",), default=True),
        _text("url_c", "url"),
        _text("preview_url_c", "previewUrl", default=""),
        _lookup("task_id_c", "taskId"),
        _lookup("project_id_c", "projectId"),
        _lookup("comment_id_c", "commentId"),
    ),
    default_order=(OrderBy(field_name="uploaded_at_c", sort_type="DESC"),),
)

CHAT_MESSAGE = EntitySchema(
    table="chat_message_c",
    label="Message",
    fields=(
        _text("Name"),
        _text("content_c", "content"),
        FieldSpec("author_id_c", LOOKUP, ("authorId",)),
        _lookup("project_id_c", "projectId"),
        _text("channel_type_c", "channelType", default=ChannelType.TEAM.value, choices=_values(ChannelType)),
        CREATED_AT,
        FieldSpec("updated_at_c", DATETIME, ("updatedAt",), default=utcnow_iso),
    ),
    default_order=(OrderBy(field_name="created_at_c"),),
    default_paging=PagingInfo(limit=100, offset=0),
    search_fields=("content_c",),
)

ALL_SCHEMAS = (
    CLIENT, PROJECT, TASK, TASK_LIST, MILESTONE, TEAM_MEMBER,
    TIME_ENTRY, ISSUE, COMMENT, FILE_ATTACHMENT, CHAT_MESSAGE,
)

SCHEMAS_BY_TABLE: Dict[str, EntitySchema] = {s.table: s for s in ALL_SCHEMAS}
