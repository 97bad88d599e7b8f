# services/tasks.py — Task records and status transitions
from typing import Any, Dict, List, Optional

from models import DONE_TASK_STATUSES
from schemas import TASK
from services.base import RecordService


class TaskService(RecordService):
    schema = TASK
    plural = "tasks"

    async def get_by_project_id(self, project_id: Any) -> List[Dict[str, Any]]:
        return await self.find_by_reference("project_id_c", project_id)

    async def mark_complete(self, task_id: Any) -> Optional[Dict[str, Any]]:
        return await self.update(task_id, {"completed_c": True})

    async def update_status(self, task_id: Any, status: str) -> Optional[Dict[str, Any]]:
        """Set the status and keep ``completed_c`` in step, in one write"""
        return await self.update(task_id, {
            "status_c": status,
            "completed_c": status in DONE_TASK_STATUSES,
        })
