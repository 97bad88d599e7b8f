# tests/test_schemas.py — Field allow-lists, aliases and coercions
import re

from schemas import (
    CHAT_MESSAGE, CLIENT, COMMENT, PROJECT, SCHEMAS_BY_TABLE, TASK, TEAM_MEMBER, TIME_ENTRY,
    lookup_id, parse_float, parse_int, round_half_up,
)


class TestCoercions:
    def test_parse_int_takes_leading_integer(self):
        assert parse_int("42") == 42
        assert parse_int("12.9") == 12
        assert parse_int(" 7 days") == 7
        assert parse_int(3.99) == 3

    def test_parse_int_rejects_non_numbers(self):
        assert parse_int("abc") is None
        assert parse_int("") is None
        assert parse_int(None) is None

    def test_parse_float(self):
        assert parse_float("1.5h") == 1.5
        assert parse_float(".25") == 0.25
        assert parse_float("") is None

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(62.5) == 63
        assert round_half_up(2.4) == 2
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(4.300000000000001, 2) == 4.3

    def test_lookup_id_accepts_objects_and_strings(self):
        assert lookup_id({"Id": 7, "Name": "Acme"}) == 7
        assert lookup_id("42") == 42
        assert lookup_id(5) == 5

    def test_lookup_id_empty_values(self):
        assert lookup_id(None) is None
        assert lookup_id("") is None
        assert lookup_id(0) is None
        assert lookup_id({"Name": "no id"}) is None


class TestBuildPayload:
    def test_alias_is_mapped_to_storage_name(self):
        payload = TASK.build_payload({"title": "Write docs", "projectId": "42"})
        assert payload == {"Name": "Write docs", "project_id_c": 42}

    def test_storage_name_wins_over_alias(self):
        payload = CLIENT.build_payload({"status_c": "Inactive", "status": "Active"})
        assert payload["status_c"] == "Inactive"

    def test_unknown_keys_are_dropped(self):
        payload = CLIENT.build_payload({"Name": "Acme", "favourite_colour": "blue", "Owner": 3})
        assert payload == {"Name": "Acme"}

    def test_system_fields_are_not_writable(self):
        assert "CreatedOn" not in SCHEMAS_BY_TABLE["issue_c"].accepted_keys()
        assert "CreatedOn" in SCHEMAS_BY_TABLE["issue_c"].read_fields

    def test_create_fills_defaults(self):
        payload = TASK.build_payload({"title": "Ship it"}, for_create=True)
        assert payload["priority_c"] == "Medium"
        assert payload["status_c"] == "To Do"
        assert payload["completed_c"] is False
        assert payload["project_id_c"] is None
        assert re.match(r"^\d{4}-\d{2}-\d{2}$", payload["start_date_c"])
        assert "T" in payload["created_at_c"]

    def test_update_omits_absent_fields(self):
        payload = PROJECT.build_payload({"status": "Review"})
        assert payload == {"status_c": "Review"}

    def test_explicit_none_is_kept_and_coerced(self):
        payload = PROJECT.build_payload({"clientId": None, "description": None})
        assert payload == {"client_id_c": None, "description_c": ""}

    def test_numeric_coercion(self):
        payload = TEAM_MEMBER.build_payload({
            "currentWorkload": "32",
            "averageTaskCompletionTime": "2.5",
            "maxCapacity": "n/a",
        })
        assert payload == {
            "current_workload_c": 32,
            "average_task_completion_time_c": 2.5,
            "max_capacity_c": 0,
        }

    def test_time_entry_duration(self):
        payload = TIME_ENTRY.build_payload({"duration": "1.75", "taskId": {"Id": 9}}, for_create=True)
        assert payload["duration_c"] == 1.75
        assert payload["task_id_c"] == 9
        assert payload["Name"] == "Time Entry"

    def test_comment_issue_id_alias(self):
        assert COMMENT.build_payload({"issueId": 3}) == {"task_id_c": 3}

    def test_chat_defaults(self):
        payload = CHAT_MESSAGE.build_payload({"content": "hi", "authorId": 2}, for_create=True)
        assert payload["channel_type_c"] == "team"
        assert payload["project_id_c"] is None
        assert CHAT_MESSAGE.default_paging.limit == 100


def test_every_table_is_registered():
    assert set(SCHEMAS_BY_TABLE) == {
        "client_c", "project_c", "task_c", "task_list_c", "milestone_c", "team_member_c",
        "time_entry_c", "issue_c", "comment_c", "file_attachment_c", "chat_message_c",
    }
