# services/clients.py — Client records
from typing import Any, Dict, List

from schemas import CLIENT
from services.base import RecordService
from services.projects import ProjectService


class ClientService(RecordService):
    schema = CLIENT
    plural = "clients"

    def __init__(self, store, notifier, projects: ProjectService):
        super().__init__(store, notifier)
        self.projects = projects

    async def get_projects_by_client_id(self, client_id: Any) -> List[Dict[str, Any]]:
        return await self.projects.get_by_client_id(client_id)
