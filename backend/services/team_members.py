# services/team_members.py — Team members and workload statistics
"""
Team member mutations raise RecordOperationError on failure instead of
returning None/False, so callers can show the exact field error inline.
"""
from typing import Any, Dict, List

from filters import any_contains, equals
from models import MemberStatus
from schemas import TEAM_MEMBER, parse_int, round_half_up
from services.base import RecordService

EMPTY_WORKLOAD = {
    "total_members": 0,
    "active_members": 0,
    "average_workload": 0,
    "capacity_utilization": 0,
    "overloaded_members": 0,
}


class TeamMemberService(RecordService):
    schema = TEAM_MEMBER
    plural = "team members"
    raise_errors = True

    def _record_id(self, record_id: Any) -> int:
        numeric_id = parse_int(record_id)
        if numeric_id is None or numeric_id <= 0:
            raise ValueError("Invalid team member ID")
        return numeric_id

    async def get_by_status(self, status: str) -> List[Dict[str, Any]]:
        return await self.find(where=[equals("status_c", status)])

    async def get_by_department(self, department: str) -> List[Dict[str, Any]]:
        return await self.find(where=[equals("department_c", department)])

    async def search(self, query: str) -> List[Dict[str, Any]]:
        """Case-insensitive match on name, email, role or department"""
        if not query or not query.strip():
            return await self.get_all()
        return await self.find(where_groups=[any_contains(self.schema.search_fields, query.strip())])

    async def get_workload_stats(self) -> Dict[str, int]:
        members = await self.find(fields=["status_c", "current_workload_c", "max_capacity_c"])
        if not members:
            return dict(EMPTY_WORKLOAD)

        active = [m for m in members if m.get("status_c") == MemberStatus.ACTIVE.value]
        total_capacity = sum(m.get("max_capacity_c") or 0 for m in active)
        total_workload = sum(m.get("current_workload_c") or 0 for m in active)
        overloaded = [
            m for m in active
            if (m.get("current_workload_c") or 0) > (m.get("max_capacity_c") or 0)
        ]
        return {
            "total_members": len(members),
            "active_members": len(active),
            "average_workload": round_half_up(total_workload / len(active)) if active else 0,
            "capacity_utilization": round_half_up(total_workload / total_capacity * 100) if total_capacity else 0,
            "overloaded_members": len(overloaded),
        }
