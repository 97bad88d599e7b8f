# services/dashboard.py — Headline metrics for the dashboard
import asyncio
from typing import Dict

from models import ClientStatus, ProjectStatus, today_iso
from services.clients import ClientService
from services.projects import ProjectService
from services.tasks import TaskService

ACTIVE_PROJECT_STATUSES = (ProjectStatus.IN_PROGRESS.value, ProjectStatus.PLANNING.value)


class DashboardService:
    def __init__(self, clients: ClientService, projects: ProjectService, tasks: TaskService):
        self.clients = clients
        self.projects = projects
        self.tasks = tasks

    async def get_stats(self) -> Dict[str, int]:
        clients, projects, tasks = await asyncio.gather(
            self.clients.get_all(),
            self.projects.get_all(),
            self.tasks.get_all(),
        )
        today = today_iso()
        open_tasks = [t for t in tasks if not t.get("completed_c") and t.get("due_date_c")]
        return {
            "total_active_clients": sum(1 for c in clients if c.get("status_c") == ClientStatus.ACTIVE.value),
            "active_projects": sum(1 for p in projects if p.get("status_c") in ACTIVE_PROJECT_STATUSES),
            "tasks_due_today": sum(1 for t in open_tasks if t["due_date_c"][:10] == today),
            "overdue_tasks": sum(1 for t in open_tasks if t["due_date_c"][:10] < today),
        }
