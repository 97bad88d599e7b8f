# models.py — Storage model and domain vocabularies
# - One generic `records` table backs every remote table name
# - Record ids are integers assigned by the store
# - Picklist enums mirror the values the hosted tables accept

from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, Index, Integer, JSON, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    return utcnow().isoformat()


def today_iso() -> str:
    return utcnow().date().isoformat()


# ============================================================
# ENUMS
# ============================================================

class ClientStatus(str, PyEnum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PROSPECT = "Prospect"


class ProjectStatus(str, PyEnum):
    PLANNING = "Planning"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"


class TaskStatus(str, PyEnum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    DONE = "Done"
    COMPLETED = "Completed"


class TaskPriority(str, PyEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class MilestoneStatus(str, PyEnum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class MemberStatus(str, PyEnum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    AWAY = "Away"


class IssueType(str, PyEnum):
    BUG = "Bug"
    TASK = "Task"
    FEATURE_REQUEST = "Feature Request"
    IMPROVEMENT = "Improvement"


class IssuePriority(str, PyEnum):
    HIGHEST = "Highest"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    LOWEST = "Lowest"


class IssueStatus(str, PyEnum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    IN_REVIEW = "In Review"
    DONE = "Done"


class Environment(str, PyEnum):
    PRODUCTION = "Production"
    STAGING = "Staging"
    DEVELOPMENT = "Development"


class ChannelType(str, PyEnum):
    TEAM = "team"
    PROJECT = "project"


# Task statuses that mean the work is finished
DONE_TASK_STATUSES = frozenset({TaskStatus.DONE.value, TaskStatus.COMPLETED.value})


# ============================================================
# RECORDS
# ============================================================

class StoredRecord(Base):
    """A row of any remote table, kept as a JSON document"""
    __tablename__ = "records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    table_name = Column(String(100), nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)
    created_on = Column(DateTime(timezone=True), default=utcnow)
    modified_on = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_records_table_id", "table_name", "id"),
    )
