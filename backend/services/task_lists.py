# services/task_lists.py — Task lists grouped under milestones and projects
from typing import Any, Dict, List

from schemas import TASK_LIST
from services.base import RecordService


class TaskListService(RecordService):
    schema = TASK_LIST
    plural = "task lists"

    async def get_by_milestone_id(self, milestone_id: Any) -> List[Dict[str, Any]]:
        return await self.find_by_reference("milestone_id_c", milestone_id)

    async def get_by_project_id(self, project_id: Any) -> List[Dict[str, Any]]:
        return await self.find_by_reference("project_id_c", project_id)
