# services/time_entries.py — Time tracking entries, ranges and summaries
from typing import Any, Dict, List, Optional

from filters import at_least, at_most, contains, equals
from schemas import TIME_ENTRY, lookup_id, round_half_up
from services.base import RecordService


class TimeEntryService(RecordService):
    """Time entries, newest date first unless a caller orders otherwise."""
    schema = TIME_ENTRY
    plural = "time entries"

    async def get_by_project_id(self, project_id: Any) -> List[Dict[str, Any]]:
        return await self.find_by_reference("project_id_c", project_id)

    async def get_by_task_id(self, task_id: Any) -> List[Dict[str, Any]]:
        return await self.find_by_reference("task_id_c", task_id)

    async def create_from_timer(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.create(data)

    async def bulk_delete(self, entry_ids: List[Any]) -> bool:
        return await self.delete_many(entry_ids)

    async def get_times_by_project(
        self,
        project_id: Any,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        reference = lookup_id(project_id)
        if reference is None:
            return []
        where = [equals("project_id_c", reference)]
        if start_date:
            where.append(at_least("date_c", start_date))
        if end_date:
            where.append(at_most("date_c", end_date))
        return await self.find(where=where)

    async def get_times_by_date_range(self, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        return await self.find(where=[at_least("date_c", start_date), at_most("date_c", end_date)])

    async def get_time_summary_by_project(self) -> List[Dict[str, Any]]:
        """Hours, entry count and distinct dates per project"""
        summary: Dict[Optional[int], Dict[str, Any]] = {}
        for entry in await self.get_all():
            project_id = lookup_id(entry.get("project_id_c"))
            bucket = summary.setdefault(project_id, {
                "project_id": project_id,
                "total_hours": 0.0,
                "total_entries": 0,
                "dates": set(),
            })
            bucket["total_hours"] += entry.get("duration_c") or 0
            bucket["total_entries"] += 1
            if entry.get("date_c"):
                bucket["dates"].add(entry["date_c"])

        results = []
        for project_id in sorted(summary, key=lambda p: (p is None, p or 0)):
            bucket = summary[project_id]
            bucket["total_hours"] = round_half_up(bucket["total_hours"], 2)
            bucket["dates"] = sorted(bucket["dates"])
            results.append(bucket)
        return results

    async def search_entries(self, term: Optional[str]) -> List[Dict[str, Any]]:
        if not term or not term.strip():
            return await self.get_all()
        return await self.find(where=[contains("description_c", term.strip())])
