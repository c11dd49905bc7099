from datetime import datetime, timezone

from conftest import USER_CREATED, op

from messageflow.compiler.diff import append_changelog, compare_schemas, diff_messages
from messageflow.ir.changelog import ChangeType, Metadata
from messageflow.ir.schema import Message, Schema, Service

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
LATER = datetime(2024, 5, 2, 12, 0, tzinfo=timezone.utc)


class TestCompareSchemas:
    def test_identical_schemas_have_no_changes(self, system):
        changelog = compare_schemas(system, system, now=NOW)

        assert changelog.changes == []
        assert changelog.date == NOW

    def test_added_and_removed_services(self, user_service, notification_service, analytics_service):
        previous = Schema(services=[user_service, notification_service])
        current = Schema(services=[analytics_service, user_service])

        changes = compare_schemas(previous, current, now=NOW).changes

        assert [(c.type, c.category, c.name) for c in changes] == [
            (ChangeType.ADDED, "service", "Analytics Service"),
            (ChangeType.REMOVED, "service", "Notification Service"),
        ]
        assert changes[0].details == "'Analytics Service' was added"
        assert changes[1].details == "'Notification Service' was removed"

    def test_operation_added_and_removed(self):
        previous = Schema(services=[Service(name="A", operations=[op("send", "x", USER_CREATED)])])
        current = Schema(services=[Service(name="A", operations=[op("receive", "y", USER_CREATED)])])

        changes = compare_schemas(previous, current, now=NOW).changes

        assert [(c.type, c.category, c.name) for c in changes] == [
            (ChangeType.ADDED, "channel", "A:receive-y-UserCreated"),
            (ChangeType.REMOVED, "channel", "A:send-x-UserCreated"),
        ]
        assert changes[0].details == "'receive' on channel 'y' was added to service 'A'"
        assert changes[1].details == "'send' on channel 'x' was removed from service 'A'"

    def test_payload_change_is_reported_with_diff(self):
        old = Message(name="UserCreated", payload='{"id": "string"}')
        new = Message(name="UserCreated", payload='{"email": "string", "id": "string"}')
        previous = Schema(services=[Service(name="A", operations=[op("send", "x", old)])])
        current = Schema(services=[Service(name="A", operations=[op("send", "x", new)])])

        changes = compare_schemas(previous, current, now=NOW).changes

        assert len(changes) == 1
        change = changes[0]
        assert change.type == ChangeType.CHANGED
        assert change.category == "message"
        assert change.name == "A:send-x-UserCreated"
        assert change.details == "Messages changed for operation 'send' on channel 'x' in service 'A'"
        assert change.diff.startswith("--- previous\n+++ current")
        assert any(line.startswith("+") and '"email"' in line for line in change.diff.splitlines())

    def test_reply_payload_change(self):
        request = Message(name="Req", payload='{"id": "string"}')
        previous = Schema(services=[Service(name="A", operations=[
            op("send", "q", request, reply=("r", [Message(name="Rep", payload='{"a": "string"}')])),
        ])])
        current = Schema(services=[Service(name="A", operations=[
            op("send", "q", request, reply=("r", [Message(name="Rep", payload='{"a": "integer"}')])),
        ])])

        changes = compare_schemas(previous, current, now=NOW).changes

        assert [(c.type, c.name) for c in changes] == [
            (ChangeType.CHANGED, "A:send-q-Req-reply-r-Rep:reply"),
        ]
        assert changes[0].details.startswith("Reply messages changed for operation 'send'")

    def test_all_changes_share_timestamp(self, system):
        changes = compare_schemas(Schema(), system, now=NOW).changes

        assert len(changes) == 3
        assert {c.timestamp for c in changes} == {NOW}


class TestDiffMessages:
    def test_equal_lists_have_empty_diff(self):
        assert diff_messages([USER_CREATED], [USER_CREATED]) == ""

    def test_non_json_payload_is_compared_as_text(self):
        diff = diff_messages([Message(name="M", payload="plain")], [Message(name="M", payload="other")])

        assert '-    "payload": "plain"' in diff
        assert '+    "payload": "other"' in diff


class TestAppendChangelog:
    def test_first_run_starts_empty_history(self, system):
        metadata = append_changelog(None, system, now=NOW)

        assert metadata.snapshot == system
        assert metadata.changelogs == []

    def test_no_changes_are_not_recorded(self, system):
        previous = Metadata(snapshot=system, changelogs=[])

        metadata = append_changelog(previous, system, now=NOW)

        assert metadata.changelogs == []

    def test_changes_are_appended_to_history(self, system, user_service):
        first = append_changelog(Metadata(snapshot=Schema(services=[user_service])), system, now=NOW)
        second = append_changelog(first, Schema(services=[user_service]), now=LATER)

        assert [c.date for c in second.changelogs] == [NOW, LATER]
        assert second.snapshot == Schema(services=[user_service])
        assert all(c.type == ChangeType.REMOVED for c in second.changelogs[1].changes)


class TestPersistedFormat:
    def test_metadata_round_trip_uses_schema_key(self, system):
        metadata = append_changelog(Metadata(snapshot=Schema()), system, now=NOW)

        document = metadata.model_dump(mode="json", by_alias=True)

        assert set(document) == {"schema", "changelogs"}
        assert Metadata.model_validate(document) == metadata

    def test_empty_fields_are_omitted(self):
        service = Service(name="A", operations=[op("send", "x", USER_CREATED)])

        document = service.model_dump(mode="json")

        assert "description" not in document
        assert "reply" not in document["operations"][0]

    def test_legacy_single_message_channel_is_accepted(self):
        document = {
            "services": [
                {
                    "name": "A",
                    "operations": [
                        {
                            "action": "send",
                            "channel": {"name": "x", "message": {"name": "M", "payload": ""}},
                        }
                    ],
                }
            ]
        }

        schema = Schema.model_validate(document)

        assert schema.services[0].operations[0].channel.messages == [Message(name="M")]
