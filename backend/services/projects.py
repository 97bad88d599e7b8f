# services/projects.py — Project records
from typing import Any, Dict, List

from schemas import PROJECT
from services.base import RecordService


class ProjectService(RecordService):
    """Projects. ``get_by_id`` rejects ids that are not positive integers."""
    schema = PROJECT
    plural = "projects"

    async def get_by_client_id(self, client_id: Any) -> List[Dict[str, Any]]:
        return await self.find_by_reference("client_id_c", client_id)
