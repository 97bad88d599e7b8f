# tests/test_services.py — Entity services over the SQL record store
from datetime import timedelta

import pytest

from errors import RecordNotFoundError, RecordOperationError, RecordStoreUnavailable
from models import today_iso, utcnow
from notifications import NotificationCenter, ToastLevel
from record_store import RecordStore
from services import ServiceRegistry, UploadRequest
from services.files import format_file_size, get_file_icon
from services.issues import extract_mentions


def errors(notifier):
    return [t.message for t in notifier.pending(ToastLevel.ERROR, limit=500)]


def successes(notifier):
    return [t.message for t in notifier.pending(ToastLevel.SUCCESS, limit=500)]


def days_from_today(days: int) -> str:
    return (utcnow().date() + timedelta(days=days)).isoformat()


class BrokenStore(RecordStore):
    """Every call fails as if the network were down"""
    backend_name = "broken"

    async def _fail(self, *args):
        raise RecordStoreUnavailable("Record store unreachable: connection refused")

    fetch_records = get_record_by_id = create_record = update_record = delete_record = _fail


# ============================================================
# GENERIC BEHAVIOUR
# ============================================================

class TestRecordService:
    @pytest.mark.asyncio
    async def test_create_applies_aliases_and_defaults(self, registry):
        task = await registry.tasks.create({"title": "Write docs", "projectId": "42"})
        assert task["Name"] == "Write docs"
        assert task["project_id_c"] == 42
        assert task["priority_c"] == "Medium"
        assert task["status_c"] == "To Do"
        assert task["completed_c"] is False

        by_project = await registry.tasks.get_by_project_id(42)
        assert [t["Id"] for t in by_project] == [task["Id"]]
        assert await registry.tasks.get_by_project_id({"Id": 42, "Name": "Site"}) == by_project

    @pytest.mark.asyncio
    async def test_update_status_keeps_completed_in_step(self, registry):
        task = await registry.tasks.create({"title": "Ship"})
        done = await registry.tasks.update_status(task["Id"], "Done")
        assert done["status_c"] == "Done"
        assert done["completed_c"] is True

        reopened = await registry.tasks.update_status(task["Id"], "In Progress")
        assert reopened["completed_c"] is False

        completed = await registry.tasks.mark_complete(task["Id"])
        assert completed["completed_c"] is True

    @pytest.mark.asyncio
    async def test_partial_batch_keeps_successes_and_reports_failures(self, registry, notifier):
        batch = await registry.tasks.create_many([
            {"title": "Valid"},
            {"title": "Invalid", "priority": "Urgent"},
        ])
        assert [t["Name"] for t in batch.succeeded] == ["Valid"]
        assert len(batch.failed) == 1
        assert batch.ok is False
        assert "priority_c: 'Urgent' is not one of: High, Medium, Low" in errors(notifier)

    @pytest.mark.asyncio
    async def test_rejected_create_returns_none(self, registry, notifier):
        assert await registry.clients.create({"Name": "Acme", "status": "Bogus"}) is None
        assert any(m.startswith("status_c:") for m in errors(notifier))

    @pytest.mark.asyncio
    async def test_get_by_id_not_found_and_invalid(self, registry):
        with pytest.raises(RecordNotFoundError):
            await registry.projects.get_by_id(999)
        assert await registry.projects.try_get_by_id(999) is None

        with pytest.raises(ValueError, match="Valid project ID is required"):
            await registry.projects.get_by_id(0)
        assert await registry.projects.try_get_by_id("abc") is None

    @pytest.mark.asyncio
    async def test_update_missing_record_returns_none(self, registry, notifier):
        assert await registry.projects.update(999, {"status": "Review"}) is None
        assert "Record does not exist" in errors(notifier)

    @pytest.mark.asyncio
    async def test_delete(self, registry):
        project = await registry.projects.create({"Name": "Site"})
        assert await registry.projects.delete(project["Id"]) is True
        assert await registry.projects.delete(project["Id"]) is False

    @pytest.mark.asyncio
    async def test_delete_many_all_or_false(self, registry):
        a = await registry.clients.create({"Name": "A"})
        b = await registry.clients.create({"Name": "B"})
        assert await registry.clients.delete_many([a["Id"], 999]) is False
        assert await registry.clients.delete_many([b["Id"]]) is True
        assert await registry.clients.get_all() == []

    @pytest.mark.asyncio
    async def test_update_many(self, registry):
        first = await registry.clients.create({"Name": "A"})
        second = await registry.clients.create({"Name": "B"})
        batch = await registry.clients.update_many([
            {"Id": first["Id"], "status": "Inactive"},
            {"Id": second["Id"], "industry": "Retail"},
        ])
        assert batch.ok
        assert {r["Id"] for r in batch.succeeded} == {first["Id"], second["Id"]}

    @pytest.mark.asyncio
    async def test_client_projects(self, registry):
        client = await registry.clients.create({"Name": "Acme"})
        await registry.projects.create({"Name": "Site", "clientId": {"Id": client["Id"]}})
        await registry.projects.create({"Name": "Other"})
        projects = await registry.clients.get_projects_by_client_id(client["Id"])
        assert [p["Name"] for p in projects] == ["Site"]
        assert await registry.clients.get_projects_by_client_id("") == []


class TestUnavailableStore:
    @pytest.fixture
    def broken(self):
        notifier = NotificationCenter()
        return ServiceRegistry(BrokenStore(), notifier), notifier

    @pytest.mark.asyncio
    async def test_reads_degrade_to_empty(self, broken):
        registry, notifier = broken
        assert await registry.clients.get_all() == []
        assert await registry.clients.try_get_by_id(1) is None
        assert errors(notifier) == [
            "Record store unreachable: connection refused",
            "Record store unreachable: connection refused",
        ]

    @pytest.mark.asyncio
    async def test_mutations_return_none_or_false(self, broken):
        registry, _ = broken
        assert await registry.projects.create({"Name": "Site"}) is None
        assert await registry.projects.update(1, {"Name": "Site"}) is None
        assert await registry.projects.delete(1) is False

    @pytest.mark.asyncio
    async def test_raising_services_raise(self, broken):
        registry, notifier = broken
        with pytest.raises(RecordOperationError):
            await registry.team_members.create({"Name": "Ann"})
        with pytest.raises(RecordOperationError):
            await registry.chat.create({"content": "hi", "authorId": 1})
        # still reported before raising
        assert len(errors(notifier)) == 2

    @pytest.mark.asyncio
    async def test_dashboard_is_zeroed(self, broken):
        registry, _ = broken
        assert await registry.dashboard.get_stats() == {
            "total_active_clients": 0,
            "active_projects": 0,
            "tasks_due_today": 0,
            "overdue_tasks": 0,
        }


# ============================================================
# ENTITIES
# ============================================================

class TestTeamMembers:
    @pytest.mark.asyncio
    async def test_mutation_failures_raise(self, registry, notifier):
        with pytest.raises(RecordOperationError) as exc:
            await registry.team_members.update(999, {"role": "Lead"})
        assert exc.value.message == "Record does not exist"
        assert "Record does not exist" in errors(notifier)

        with pytest.raises(ValueError, match="Invalid team member ID"):
            await registry.team_members.update("abc", {"role": "Lead"})

    @pytest.mark.asyncio
    async def test_field_errors_are_carried(self, registry):
        with pytest.raises(RecordOperationError) as exc:
            await registry.team_members.create({"Name": "Ann", "startDate": 20260101})
        assert exc.value.message == "Unable to create record: 1 invalid field(s)"
        assert exc.value.errors == [
            {"fieldLabel": "start_date_c", "message": "Invalid value for date field: 20260101"}
        ]

    @pytest.mark.asyncio
    async def test_reads_do_not_raise(self, registry):
        assert await registry.team_members.try_get_by_id(999) is None

    @pytest.mark.asyncio
    async def test_filters_and_search(self, registry):
        await registry.team_members.create_many([
            {"Name": "Ann Lee", "email": "ann@co.example", "department": "Engineering", "status": "Active"},
            {"Name": "Bob Roy", "email": "bob@co.example", "department": "Design", "status": "Away"},
        ])
        assert [m["Name"] for m in await registry.team_members.get_by_status("Away")] == ["Bob Roy"]
        assert [m["Name"] for m in await registry.team_members.get_by_department("Engineering")] == ["Ann Lee"]
        assert [m["Name"] for m in await registry.team_members.search("ENGIN")] == ["Ann Lee"]
        assert [m["Name"] for m in await registry.team_members.search("bob@")] == ["Bob Roy"]
        assert len(await registry.team_members.search("   ")) == 2

    @pytest.mark.asyncio
    async def test_workload_stats(self, registry):
        await registry.team_members.create_many([
            {"Name": "A", "status": "Active", "currentWorkload": 40, "maxCapacity": 40},
            {"Name": "B", "status": "Active", "currentWorkload": 45, "maxCapacity": 40},
            {"Name": "C", "status": "Active", "currentWorkload": 29, "maxCapacity": 41},
            {"Name": "D", "status": "Inactive", "currentWorkload": 50, "maxCapacity": 10},
        ])
        assert await registry.team_members.get_workload_stats() == {
            "total_members": 4,
            "active_members": 3,
            "average_workload": 38,
            "capacity_utilization": 94,
            "overloaded_members": 1,
        }

    @pytest.mark.asyncio
    async def test_workload_stats_empty(self, registry):
        stats = await registry.team_members.get_workload_stats()
        assert stats["total_members"] == 0
        assert stats["capacity_utilization"] == 0

    @pytest.mark.asyncio
    async def test_workload_stats_round_halves_up(self, registry):
        await registry.team_members.create_many([
            {"Name": "A", "status": "Active", "currentWorkload": 2, "maxCapacity": 4},
            {"Name": "B", "status": "Active", "currentWorkload": 3, "maxCapacity": 4},
        ])
        stats = await registry.team_members.get_workload_stats()
        # 2.5 and 62.5 both go up
        assert stats["average_workload"] == 3
        assert stats["capacity_utilization"] == 63


class TestTimeEntries:
    @pytest.mark.asyncio
    async def test_summary_by_project(self, registry):
        await registry.time_entries.create_many([
            {"description": "Design", "duration": 1.1, "date": "2026-01-02", "projectId": 2},
            {"description": "Build", "duration": 2.2, "date": "2026-01-03", "projectId": 2},
            {"description": "Build", "duration": 1, "date": "2026-01-03", "projectId": 2},
            {"description": "Admin", "duration": 0.5, "date": "2026-01-01"},
            {"description": "Kickoff", "duration": "3", "date": "2026-01-01", "projectId": 1},
        ])
        summary = await registry.time_entries.get_time_summary_by_project()
        assert summary == [
            {"project_id": 1, "total_hours": 3.0, "total_entries": 1, "dates": ["2026-01-01"]},
            {"project_id": 2, "total_hours": 4.3, "total_entries": 3, "dates": ["2026-01-02", "2026-01-03"]},
            {"project_id": None, "total_hours": 0.5, "total_entries": 1, "dates": ["2026-01-01"]},
        ]

    @pytest.mark.asyncio
    async def test_summary_hours_round_halves_up(self, registry):
        await registry.time_entries.create({"description": "Call", "duration": 0.125, "date": "2026-01-01", "projectId": 1})
        [bucket] = await registry.time_entries.get_time_summary_by_project()
        assert bucket["total_hours"] == 0.13

    @pytest.mark.asyncio
    async def test_ranges_and_search(self, registry):
        await registry.time_entries.create_many([
            {"description": "Sprint planning", "duration": 1, "date": "2026-01-01", "projectId": 1},
            {"description": "Code review", "duration": 2, "date": "2026-01-05", "projectId": 1},
            {"description": "Planning poker", "duration": 1, "date": "2026-01-09", "projectId": 2},
        ])
        in_range = await registry.time_entries.get_times_by_project(1, start_date="2026-01-02")
        assert [e["description_c"] for e in in_range] == ["Code review"]

        window = await registry.time_entries.get_times_by_date_range("2026-01-01", "2026-01-05")
        # newest first by default
        assert [e["date_c"] for e in window] == ["2026-01-05", "2026-01-01"]

        assert len(await registry.time_entries.search_entries("PLANNING")) == 2
        assert len(await registry.time_entries.search_entries("")) == 3
        assert len(await registry.time_entries.search_entries("   ")) == 3

    @pytest.mark.asyncio
    async def test_timer_and_bulk_delete(self, registry):
        entry = await registry.time_entries.create_from_timer({"duration": 0.25, "taskId": 4})
        assert entry["Name"] == "Time Entry"
        assert [e["Id"] for e in await registry.time_entries.get_by_task_id(4)] == [entry["Id"]]
        assert await registry.time_entries.bulk_delete([entry["Id"]]) is True


class TestMilestonesAndTaskLists:
    @pytest.mark.asyncio
    async def test_upcoming(self, registry):
        await registry.milestones.create_many([
            {"Name": "Soon", "dueDate": days_from_today(3)},
            {"Name": "Today", "dueDate": days_from_today(0)},
            {"Name": "Later", "dueDate": days_from_today(30)},
            {"Name": "Past", "dueDate": days_from_today(-2)},
            {"Name": "Done", "dueDate": days_from_today(2), "completed": True},
        ])
        upcoming = await registry.milestones.get_upcoming()
        assert [m["Name"] for m in upcoming] == ["Today", "Soon"]
        assert [m["Name"] for m in await registry.milestones.get_upcoming(days=60)] == ["Today", "Soon", "Later"]

    @pytest.mark.asyncio
    async def test_mark_complete(self, registry):
        milestone = await registry.milestones.create({"Name": "Beta", "projectId": 3})
        done = await registry.milestones.mark_complete(milestone["Id"])
        assert done["completed_c"] is True
        assert done["status_c"] == "Completed"
        assert len(await registry.milestones.get_by_project_id(3)) == 1

    @pytest.mark.asyncio
    async def test_task_lists(self, registry):
        await registry.task_lists.create({"Name": "Backlog", "milestoneId": 5, "projectId": 3})
        await registry.task_lists.create({"Name": "Icebox", "projectId": 3})
        assert [t["Name"] for t in await registry.task_lists.get_by_milestone_id(5)] == ["Backlog"]
        assert len(await registry.task_lists.get_by_project_id(3)) == 2


class TestIssues:
    @pytest.mark.asyncio
    async def test_issue_lifecycle_toasts(self, registry, notifier):
        first = await registry.issues.create({"title": "Login fails", "type": "Bug", "priority": "High", "status": "To Do"})
        second = await registry.issues.create({"title": "Dark mode", "type": "Feature Request"})
        updated = await registry.issues.update(first["Id"], {"status": "Done"})
        assert updated["status_c"] == "Done"
        assert updated["updated_at_c"]
        assert await registry.issues.remove([first["Id"], second["Id"]]) is True
        assert successes(notifier) == [
            "Issue created successfully",
            "Issue created successfully",
            "Issue updated successfully",
            "2 issue(s) deleted successfully",
        ]

    @pytest.mark.asyncio
    async def test_remove_single_id(self, registry):
        issue = await registry.issues.create({"title": "Typo"})
        assert await registry.issues.remove(issue["Id"]) is True

    @pytest.mark.asyncio
    async def test_search_issues(self, registry):
        await registry.issues.create_many([
            {"title": "Login fails on Safari", "status": "To Do", "projectId": 1},
            {"title": "Login button misaligned", "status": "Done", "projectId": 1},
            {"title": "Slow search", "status": "Done", "projectId": 2},
        ])
        assert len(await registry.issues.search_issues("login")) == 2
        assert [i["title_c"] for i in await registry.issues.search_issues("login", {"status": "Done"})] == [
            "Login button misaligned"
        ]
        assert len(await registry.issues.search_issues(None, {"projectId": 2})) == 1

    @pytest.mark.asyncio
    async def test_comments_and_mentions(self, registry, notifier):
        issue = await registry.issues.create({"title": "Crash"})
        comment = await registry.issues.create_comment({
            "content": "Ping @alice and @bob_smith",
            "issueId": issue["Id"],
            "authorId": 3,
        })
        assert comment["mentions_c"] == "alice,bob_smith"
        assert comment["is_edited_c"] is False

        edited = await registry.issues.update_comment(comment["Id"], {"content": "Fixed"})
        assert edited["is_edited_c"] is True
        assert edited["content_c"] == "Fixed"

        comments = await registry.issues.get_comments_by_issue_id(issue["Id"])
        assert [c["Id"] for c in comments] == [comment["Id"]]
        assert await registry.issues.delete_comment(comment["Id"]) is True
        assert "Comment added successfully" in successes(notifier)
        assert "Comment deleted successfully" in successes(notifier)

    def test_extract_mentions(self):
        assert extract_mentions("@a, @b and email x@y") == ["a", "b", "y"]
        assert extract_mentions(None) == []


class TestFiles:
    @pytest.mark.asyncio
    async def test_upload_versions(self, registry):
        request = UploadRequest(file_name="spec.pdf", uploaded_by=3, file_size=1536,
                                file_type="application/pdf", task_id=5)
        first = await registry.files.upload(request)
        assert first["version_c"] == 1
        assert first["url_c"] == "/uploads/spec-v1.pdf"
        assert first["preview_url_c"] == "/previews/spec-v1.jpg"

        second = await registry.files.upload(request)
        assert second["version_c"] == 2
        assert second["is_latest_c"] is True

        versions = await registry.files.get_versions("spec.pdf", task_id=5)
        assert [v["version_c"] for v in versions] == [2, 1]
        assert versions[1]["is_latest_c"] is False
        assert len(await registry.files.get_by_task_id(5)) == 2

    @pytest.mark.asyncio
    async def test_non_previewable_upload(self, registry):
        created = await registry.files.upload(
            UploadRequest(file_name="data.zip", uploaded_by=1, file_type="application/zip", project_id=2)
        )
        assert created["preview_url_c"] == ""
        assert [f["Id"] for f in await registry.files.get_by_project_id(2)] == [created["Id"]]
        assert await registry.files.delete(created["Id"]) is True

    @pytest.mark.asyncio
    async def test_upload_validation(self, registry):
        with pytest.raises(ValueError, match="Either task ID or project ID is required"):
            await registry.files.upload(UploadRequest(file_name="a.txt", uploaded_by=1))
        with pytest.raises(ValueError, match="Uploader ID is required"):
            await registry.files.upload(UploadRequest(file_name="a.txt", uploaded_by=0, task_id=1))
        with pytest.raises(ValueError, match="Valid task ID is required"):
            await registry.files.get_by_task_id(0)
        with pytest.raises(ValueError, match="Valid file name is required"):
            await registry.files.get_versions("")

    def test_helpers(self):
        assert format_file_size(0) == "0 Bytes"
        assert format_file_size(500) == "500 Bytes"
        assert format_file_size(1536) == "1.5 KB"
        assert format_file_size(1048576) == "1 MB"
        assert get_file_icon("image/png") == "Image"
        assert get_file_icon("application/vnd.ms-excel") == "FileSpreadsheet"
        assert get_file_icon(None) == "File"


class TestChat:
    @pytest.mark.asyncio
    async def test_messages_are_presented_with_aliases(self, registry):
        message = await registry.chat.create({"content": "hello team", "authorId": 3})
        assert message["content"] == "hello team"
        assert message["authorId"] == 3
        assert message["channelType"] == "team"
        assert message["Name"] == "Message from 3"
        assert message["reactions"] == []
        assert message["hasThread"] is False

    @pytest.mark.asyncio
    async def test_channel_filters_and_search(self, registry):
        await registry.chat.create({"content": "Team standup", "authorId": 1})
        await registry.chat.create({"content": "Project kickoff", "authorId": 1,
                                    "projectId": 7, "channelType": "project"})
        team = await registry.chat.get_messages_by_channel(None, "team")
        assert [m["content"] for m in team] == ["Team standup"]
        project = await registry.chat.get_messages_by_channel(7, "project")
        assert [m["content"] for m in project] == ["Project kickoff"]
        assert len(await registry.chat.search_messages("STANDUP")) == 1
        assert await registry.chat.search_messages("kickoff") == []

    @pytest.mark.asyncio
    async def test_update_only_changes_content(self, registry):
        message = await registry.chat.create({"content": "typo", "authorId": 3})
        edited = await registry.chat.update(message["Id"], {"content": "fixed", "authorId": 9})
        assert edited["content"] == "fixed"
        assert edited["authorId"] == 3
        with pytest.raises(RecordOperationError):
            await registry.chat.update(999, {"content": "x"})

    @pytest.mark.asyncio
    async def test_update_without_content_keeps_message(self, registry):
        message = await registry.chat.create({"content": "keep me", "authorId": 3})
        edited = await registry.chat.update(message["Id"], {"authorId": 9})
        assert edited["content"] == "keep me"
        assert edited["authorId"] == 3
        assert edited["updated_at_c"] == message["updated_at_c"]

    @pytest.mark.asyncio
    async def test_reactions(self, registry):
        message = await registry.chat.create({"content": "ship it", "authorId": 1})
        await registry.chat.add_reaction(message["Id"], "👍", 3)
        await registry.chat.add_reaction(message["Id"], "👍", 4)
        await registry.chat.add_reaction(message["Id"], "🎉", 3)
        assert await registry.chat.get_message_reactions(message["Id"]) == [
            {"emoji": "👍", "count": 2, "users": [3, 4]},
            {"emoji": "🎉", "count": 1, "users": [3]},
        ]
        assert await registry.chat.remove_reaction(message["Id"], "👍", 3) is True
        assert await registry.chat.remove_reaction(message["Id"], "👍", 3) is False
        fetched = await registry.chat.get_by_id(message["Id"])
        assert fetched["reactions"][0] == {"emoji": "👍", "count": 1, "users": [4]}

    @pytest.mark.asyncio
    async def test_channels(self, registry):
        assert len(await registry.chat.get_channels_by_type("project")) == 3
        channel = await registry.chat.create_channel({"name": "Random"})
        assert channel["type"] == "team"
        assert await registry.chat.add_member_to_channel(channel["Id"], 4) is True
        team = await registry.chat.get_channels_by_type("team")
        assert [c["memberCount"] for c in team if c["Id"] == channel["Id"]] == [2]
        with pytest.raises(ValueError, match="Channel name is required"):
            await registry.chat.create_channel({})


class TestDashboard:
    @pytest.mark.asyncio
    async def test_stats(self, registry):
        await registry.clients.create_many([
            {"Name": "A", "status": "Active"},
            {"Name": "B", "status": "Active"},
            {"Name": "C", "status": "Inactive"},
        ])
        await registry.projects.create_many([
            {"Name": "P1", "status": "In Progress"},
            {"Name": "P2", "status": "Planning"},
            {"Name": "P3", "status": "Completed"},
        ])
        await registry.tasks.create_many([
            {"title": "due today", "dueDate": today_iso()},
            {"title": "late", "dueDate": days_from_today(-1)},
            {"title": "late but done", "dueDate": days_from_today(-1), "completed": True},
            {"title": "no date"},
            {"title": "future", "dueDate": days_from_today(5)},
        ])
        assert await registry.dashboard.get_stats() == {
            "total_active_clients": 2,
            "active_projects": 2,
            "tasks_due_today": 1,
            "overdue_tasks": 1,
        }
