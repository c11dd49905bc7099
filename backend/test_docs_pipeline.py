import logging
from datetime import datetime, timezone

import pytest
from conftest import USER_CREATED, op

from messageflow.compiler.layout import sort_schema
from messageflow.compiler.render_d2 import D2Target
from messageflow.ir.changelog import Change, Changelog, ChangeType
from messageflow.ir.errors import PipelineError, RenderError
from messageflow.ir.schema import Schema, Service
from messageflow.pipeline import DocsController, extract_channel_info, sanitize_anchor
from messageflow.pipeline.context import DocsContext
from messageflow.pipeline.diagram_stage import DiagramStage, diagram_jobs
from messageflow.pipeline.docs import sort_changelogs
from messageflow.pipeline.readme_stage import render_readme
from messageflow.store import JsonMetadataStore


def _run(tmp_path, schema, renderer, **kwargs):
    return DocsController().run(
        sort_schema(schema),
        D2Target(renderer=renderer),
        str(tmp_path),
        store=JsonMetadataStore(str(tmp_path)),
        **kwargs,
    )


class TestSanitizeAnchor:
    def test_rules(self):
        assert sanitize_anchor("User Service") == "user-service"
        assert sanitize_anchor("user.info.request") == "userinforequest"
        assert sanitize_anchor("orders/{order_id}") == "orders/orderid"


class TestExtractChannelInfo:
    def test_request_reply_channel(self, system):
        messages = extract_channel_info(system)["user.info.request"].messages

        assert [(m.name, m.direction) for m in messages] == [
            ("UserInfoRequest", "request"),
            ("UserInfoReply", "reply"),
        ]

    def test_receive_preferred_over_send(self, system):
        messages = extract_channel_info(system)["user.created"].messages

        assert [(m.name, m.direction, m.service) for m in messages] == [
            ("UserCreated", "receive", "Notification Service"),
        ]

    def test_reply_only_channels_are_absent(self, system):
        assert "user.info.reply" not in extract_channel_info(system)


class TestSortChangelogs:
    def test_newest_first_and_changes_ordered(self):
        ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
        old = Changelog(date=ts, changes=[])
        new = Changelog(
            date=datetime(2024, 2, 1, tzinfo=timezone.utc),
            changes=[
                Change(type=ChangeType.REMOVED, category="service", name="B", timestamp=ts),
                Change(type=ChangeType.ADDED, category="service", name="Z", timestamp=ts),
                Change(type=ChangeType.ADDED, category="channel", name="A", timestamp=ts),
            ],
        )

        ordered = sort_changelogs([old, new])

        assert ordered[0].date == new.date
        assert [(c.type.value, c.category, c.name) for c in ordered[0].changes] == [
            ("added", "channel", "A"),
            ("added", "service", "Z"),
            ("removed", "service", "B"),
        ]


class TestDocsController:
    def test_first_run_writes_everything(self, tmp_path, system, fake_renderer):
        context = _run(tmp_path, system, fake_renderer, title="Platform Events")

        diagrams = tmp_path / "diagrams"
        assert (diagrams / "context.svg").exists()
        assert (diagrams / "service_user-service.svg").exists()
        assert (diagrams / "service_analytics-service.svg").exists()
        assert (diagrams / "channel_usercreated.svg").exists()
        assert (diagrams / "channel_userinforeply.svg").exists()
        assert len(context.diagrams) == 1 + 3 + 4
        assert (tmp_path / "messageflow.json").exists()

        readme = (tmp_path / "README.md").read_text(encoding="utf-8")
        assert readme.startswith("# Platform Events\n")
        assert "![User Service](diagrams/service_user-service.svg)" in readme
        assert "![user.created](diagrams/channel_usercreated.svg)" in readme
        assert "No changes recorded yet." in readme

    def test_channel_diagrams_omit_payloads(self, tmp_path, system, fake_renderer):
        _run(tmp_path, system, fake_renderer)

        channel_sources = [s for s in fake_renderer.sources if b"shape: queue" in s]

        assert len(channel_sources) == 4
        assert all(b"|||md" not in s for s in channel_sources)

    def test_second_run_records_changelog(self, tmp_path, system, user_service, fake_renderer):
        _run(tmp_path, Schema(services=[user_service]), fake_renderer)
        context = _run(tmp_path, system, fake_renderer)

        assert len(context.metadata.changelogs) == 1
        readme = (tmp_path / "README.md").read_text(encoding="utf-8")
        assert "**added** service `Analytics Service`: 'Analytics Service' was added" in readme
        assert "No changes recorded yet." not in readme

    def test_unchanged_schema_adds_no_changelog(self, tmp_path, system, fake_renderer):
        _run(tmp_path, system, fake_renderer)
        context = _run(tmp_path, system, fake_renderer)

        assert context.metadata.changelogs == []

    def test_stale_diagrams_are_removed(self, tmp_path, system, fake_renderer):
        (tmp_path / "diagrams").mkdir()
        (tmp_path / "diagrams" / "service_gone.svg").write_bytes(b"old")

        _run(tmp_path, system, fake_renderer)

        assert not (tmp_path / "diagrams" / "service_gone.svg").exists()

    def test_render_failure_stops_pipeline(self, tmp_path, system, failing_renderer):
        with pytest.raises(PipelineError) as exc:
            _run(tmp_path, system, failing_renderer)

        assert exc.value.stage == "diagrams"
        assert isinstance(exc.value.cause, RenderError)
        assert str(exc.value) == "diagrams failed: renderer unavailable"
        assert not (tmp_path / "README.md").exists()
        # metadata ran before the failure
        assert (tmp_path / "messageflow.json").exists()


class TestDiagramStage:
    def test_single_worker(self, tmp_path, system, fake_renderer):
        stage = DiagramStage(max_workers=1)
        context = _run(tmp_path, system, fake_renderer)
        context.diagrams = []

        stage.run(context)

        assert len(context.diagrams) == 8

    def test_first_failure_skips_jobs_not_started(self, tmp_path, system):
        class CountingFailingRenderer:
            def __init__(self):
                self.calls = 0

            def render(self, source: bytes) -> bytes:
                self.calls += 1
                raise RenderError("renderer unavailable")

        renderer = CountingFailingRenderer()
        context = DocsContext(
            schema=sort_schema(system),
            target=D2Target(renderer=renderer),
            output_dir=str(tmp_path),
        )

        with pytest.raises(RenderError):
            DiagramStage(max_workers=1).run(context)

        assert renderer.calls == 1
        assert list((tmp_path / "diagrams").iterdir()) == []

    def test_colliding_file_names_are_rendered_once(self, tmp_path, caplog):
        schema = Schema(
            services=[
                Service(
                    name="Events",
                    operations=[
                        op("send", "user.created", USER_CREATED),
                        op("send", "user_created", USER_CREATED),
                    ],
                )
            ]
        )
        context = DocsContext(schema=schema, target=D2Target(), output_dir=str(tmp_path))

        with caplog.at_level(logging.WARNING, logger="messageflow.pipeline.diagram_stage"):
            jobs = diagram_jobs(context)

        filenames = [filename for filename, _ in jobs]
        assert filenames.count("channel_usercreated.svg") == 1
        assert len(filenames) == len(set(filenames))
        assert "channel_usercreated.svg is produced more than once" in caplog.text


class TestRenderReadme:
    def test_sections(self, system):
        readme = render_readme(sort_schema(system), "Message Flow", [])

        assert readme.index("## Services") < readme.index("## Channels") < readme.index("## Changelog")
        assert "### Analytics Service" in readme
        assert "Manages users" in readme
        assert "#### UserInfoRequest" in readme
        assert "_request, Analytics Service_" in readme
        assert "```json" in readme
        assert "  - [user.info.request](#userinforequest)" in readme
        assert readme.endswith("\n")
