# services — Entity services over the record store
from notifications import Notifier
from record_store import RecordStore
from services.base import BatchResult, RecordService
from services.chat import ChannelRepository, ChatService, ReactionRepository
from services.clients import ClientService
from services.dashboard import DashboardService
from services.files import FileService, FileUrlBuilder, UploadRequest
from services.issues import CommentService, IssueService
from services.milestones import MilestoneService
from services.projects import ProjectService
from services.task_lists import TaskListService
from services.tasks import TaskService
from services.team_members import TeamMemberService
from services.time_entries import TimeEntryService


class ServiceRegistry:
    """Every service wired to one store and one notifier"""

    def __init__(
        self,
        store: RecordStore,
        notifier: Notifier,
        url_builder: FileUrlBuilder = None,
        channels: ChannelRepository = None,
        reactions: ReactionRepository = None,
    ):
        self.store = store
        self.notifier = notifier
        self.projects = ProjectService(store, notifier)
        self.clients = ClientService(store, notifier, self.projects)
        self.tasks = TaskService(store, notifier)
        self.task_lists = TaskListService(store, notifier)
        self.milestones = MilestoneService(store, notifier)
        self.team_members = TeamMemberService(store, notifier)
        self.time_entries = TimeEntryService(store, notifier)
        self.comments = CommentService(store, notifier)
        self.issues = IssueService(store, notifier, self.comments)
        self.files = FileService(store, notifier, url_builder)
        self.chat = ChatService(store, notifier, channels, reactions)
        self.dashboard = DashboardService(self.clients, self.projects, self.tasks)


__all__ = [
    "BatchResult", "RecordService", "ServiceRegistry",
    "ChatService", "ClientService", "CommentService", "DashboardService", "FileService",
    "IssueService", "MilestoneService", "ProjectService", "TaskListService", "TaskService",
    "TeamMemberService", "TimeEntryService", "FileUrlBuilder", "UploadRequest",
]
