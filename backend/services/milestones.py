# services/milestones.py — Project milestones
from datetime import timedelta
from typing import Any, Dict, List, Optional

from filters import at_least, at_most, equals, order
from models import MilestoneStatus, utcnow
from schemas import MILESTONE
from services.base import RecordService


class MilestoneService(RecordService):
    schema = MILESTONE
    plural = "milestones"

    async def get_by_project_id(self, project_id: Any) -> List[Dict[str, Any]]:
        return await self.find_by_reference("project_id_c", project_id)

    async def mark_complete(self, milestone_id: Any) -> Optional[Dict[str, Any]]:
        return await self.update(milestone_id, {
            "completed_c": True,
            "status_c": MilestoneStatus.COMPLETED.value,
        })

    async def get_upcoming(self, days: int = 14) -> List[Dict[str, Any]]:
        """Open milestones due between today and ``days`` from now, soonest first"""
        today = utcnow().date()
        return await self.find(
            where=[
                equals("completed_c", False),
                at_least("due_date_c", today.isoformat()),
                at_most("due_date_c", (today + timedelta(days=days)).isoformat()),
            ],
            order_by=[order("due_date_c")],
        )
