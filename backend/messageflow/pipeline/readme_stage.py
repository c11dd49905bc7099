import logging
import os
from typing import List

from messageflow.compiler.projection import extract_unique_channels
from messageflow.ir.changelog import Changelog
from messageflow.ir.schema import Schema
from messageflow.pipeline.context import DocsContext
from messageflow.pipeline.docs import extract_channel_info, sanitize_anchor, sort_changelogs
from messageflow.pipeline.stage import PipelineStage

logger = logging.getLogger(__name__)


# ============================================================
# Sections
# ============================================================

def _toc(schema: Schema, channels: List[str]) -> List[str]:
    lines = ["## Table of Contents", "", "- [Context](#context)", "- [Services](#services)"]
    for service in sorted(schema.services, key=lambda s: s.name):
        lines.append(f"  - [{service.name}](#{sanitize_anchor(service.name)})")
    lines.append("- [Channels](#channels)")
    for channel in channels:
        lines.append(f"  - [{channel}](#{sanitize_anchor(channel)})")
    lines.append("- [Changelog](#changelog)")
    lines.append("")
    return lines


def _services(schema: Schema) -> List[str]:
    lines = ["## Services", ""]

    for service in sorted(schema.services, key=lambda s: s.name):
        lines.append(f"### {service.name}")
        lines.append("")
        if service.description:
            lines.append(service.description)
            lines.append("")
        lines.append(f"![{service.name}](diagrams/service_{sanitize_anchor(service.name)}.svg)")
        lines.append("")

    return lines


def _channels(schema: Schema, channels: List[str]) -> List[str]:
    info = extract_channel_info(schema)
    lines = ["## Channels", ""]

    for channel in channels:
        lines.append(f"### {channel}")
        lines.append("")

        for message in info[channel].messages if channel in info else []:
            if not message.name:
                continue
            lines.append(f"#### {message.name}")
            lines.append("")
            lines.append(f"_{message.direction}, {message.service}_")
            lines.append("")
            if message.payload:
                lines.extend(["```json", message.payload, "```", ""])

        lines.append(f"![{channel}](diagrams/channel_{sanitize_anchor(channel)}.svg)")
        lines.append("")

    return lines


def _changelog(changelogs: List[Changelog]) -> List[str]:
    lines = ["## Changelog", ""]

    if not changelogs:
        lines.extend(["No changes recorded yet.", ""])
        return lines

    for changelog in sort_changelogs(changelogs):
        lines.append(f"### {changelog.date.strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append("")
        for change in changelog.changes:
            entry = f"- **{change.type.value}** {change.category} `{change.name}`"
            if change.details:
                entry += f": {change.details}"
            lines.append(entry)
            if change.diff:
                lines.append("")
                lines.append("  ```diff")
                lines.extend(f"  {line}" for line in change.diff.splitlines())
                lines.append("  ```")
        lines.append("")

    return lines


def render_readme(schema: Schema, title: str, changelogs: List[Changelog]) -> str:
    channels = extract_unique_channels(schema)

    lines = [f"# {title}", ""]
    lines.extend(_toc(schema, channels))
    lines.extend(["## Context", "", "![Context](diagrams/context.svg)", ""])
    lines.extend(_services(schema))
    lines.extend(_channels(schema, channels))
    lines.extend(_changelog(changelogs))

    return "\n".join(lines).rstrip("\n") + "\n"


# ============================================================
# Stage
# ============================================================

class ReadmeStage(PipelineStage):
    name = "readme"

    def run(self, context: DocsContext) -> None:
        changelogs = context.metadata.changelogs if context.metadata else []
        content = render_readme(context.schema, context.title, changelogs)

        path = os.path.join(context.output_dir, "README.md")
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)

        context.readme_path = path
        logger.info("wrote %s", path)
