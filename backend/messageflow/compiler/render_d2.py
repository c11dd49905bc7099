# backend/messageflow/compiler/render_d2.py
"""
D2 Diagram Target

Formats projected views as D2 source and hands D2 source to a renderer
for the final SVG. D2 is a diagram language with built-in shapes,
markdown labels and several layout engines (dagre, elk, tala).

Docs: https://d2lang.com/
"""

import logging
from typing import List

from messageflow.compiler.projection import project
from messageflow.compiler.types import (
    D2_TARGET,
    ChannelServicesPayload,
    Connection,
    ContextServicesPayload,
    FormatOptions,
    FormattedSchema,
    ServiceServicesPayload,
    TargetCapabilities,
)
from messageflow.ir.errors import UnsupportedFormatError
from messageflow.ir.schema import Action, Schema, Service

logger = logging.getLogger(__name__)


# D2 style mappings per element kind
D2_STYLE_MAP = {
    "service": "fill: '#E8F5E9'; stroke: '#2E7D32'",
    "main_service": "fill: '#FFF3E0'; stroke: '#EF6C00'",
    "channel": "fill: '#F3E5F5'; stroke: '#7B1FA2'",
    "message": "fill: '#FAFAFA'; stroke: '#9E9E9E'",
}

REPLY_EDGE_STYLE = "style.stroke-dash: 3"


class D2Target:
    """
    Formats schemas to D2 and renders them through an optional renderer.
    Settings are fixed at construction.
    """

    def __init__(self, renderer=None, direction: str = "right"):
        self.renderer = renderer
        self.direction = direction

    def capabilities(self) -> TargetCapabilities:
        return TargetCapabilities(format=True, render=self.renderer is not None)

    # ---------- format ----------

    def format_schema(self, schema: Schema, options: FormatOptions) -> FormattedSchema:
        payload = project(schema, options)

        if isinstance(payload, ContextServicesPayload):
            source = render_context_services(payload, self.direction)
        elif isinstance(payload, ChannelServicesPayload):
            source = render_channel_services(payload, self.direction)
        elif isinstance(payload, ServiceServicesPayload):
            source = render_service_services(payload, self.direction)
        else:
            source = render_service_channels(payload, self.direction)

        return FormattedSchema(type=D2_TARGET, data=source.encode("utf-8"))

    # ---------- render ----------

    def render_schema(self, formatted: FormattedSchema) -> bytes:
        if formatted.type != D2_TARGET:
            raise UnsupportedFormatError(formatted.type, D2_TARGET)

        if self.renderer is None:
            raise UnsupportedFormatError(formatted.type, "a configured renderer")

        logger.debug("rendering %d bytes of d2 source", len(formatted.data))
        return self.renderer.render(formatted.data)


# ============================================================
# D2 helpers
# ============================================================

def _quote(text: str) -> str:
    """Quoted D2 key/label; keeps dots in channel names from nesting."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _header(direction: str) -> List[str]:
    return [f"direction: {direction}", ""]


def _markdown(key: str, lines: List[str], style: str) -> List[str]:
    out = [f"{key}: |||md"]
    out.extend(f"  {line}" if line else "" for line in lines)
    out.append("|||")
    out.append(f"{key}.style: {{ {style} }}")
    return out


def _service_node(service: Service, kind: str = "service") -> List[str]:
    lines = [f"## {service.name}"]
    if service.description:
        lines.append("")
        lines.extend(service.description.split("\n"))
    return _markdown(_quote(service.name), lines, D2_STYLE_MAP[kind])


def _channel_node(name: str) -> str:
    return f"{_quote(name)}: {{ shape: queue; style: {{ {D2_STYLE_MAP['channel']} }} }}"


def _edge(source: str, target: str, label: str = "", style: str = "", arrow: str = "->") -> str:
    line = f"{_quote(source)} {arrow} {_quote(target)}"
    if label:
        line += f": {_quote(label)}"
    if style:
        line += f" {{ {style} }}"
    return line


def _connection_edge(conn: Connection) -> str:
    arrow = "<->" if conn.bidirectional else "->"
    return _edge(conn.source, conn.target, conn.label, arrow=arrow)


def _message_names(messages) -> str:
    return ", ".join(m.name for m in messages if m.name)


# ============================================================
# Views
# ============================================================

def render_context_services(payload: ContextServicesPayload, direction: str = "right") -> str:
    lines = _header(direction)

    for service in payload.services:
        lines.extend(_service_node(service))
        lines.append("")

    for conn in payload.connections:
        lines.append(_connection_edge(conn))

    return "\n".join(lines) + "\n"


def render_service_channels(service: Service, direction: str = "right") -> str:
    lines = _header(direction)

    if not service.name:
        return "\n".join(lines) + "\n"

    lines.extend(_service_node(service, "main_service"))
    lines.append("")

    declared = set()
    edges = []

    for op in service.operations:
        channels = [op.channel] + ([op.reply] if op.reply is not None else [])
        for channel in channels:
            if channel.name not in declared:
                lines.append(_channel_node(channel.name))
                declared.add(channel.name)

        label = _message_names(op.channel.messages)
        if op.action == Action.SEND:
            edges.append(_edge(service.name, op.channel.name, label))
            if op.reply is not None:
                edges.append(
                    _edge(op.reply.name, service.name,
                          _message_names(op.reply.messages), REPLY_EDGE_STYLE)
                )
        else:
            edges.append(_edge(op.channel.name, service.name, label))
            if op.reply is not None:
                edges.append(
                    _edge(service.name, op.reply.name,
                          _message_names(op.reply.messages), REPLY_EDGE_STYLE)
                )

    lines.append("")
    lines.extend(edges)

    return "\n".join(lines) + "\n"


def render_channel_services(payload: ChannelServicesPayload, direction: str = "right") -> str:
    lines = _header(direction)
    lines.append(_channel_node(payload.channel))
    lines.append("")

    for sender in payload.senders:
        lines.append(_edge(sender, payload.channel, payload.message_name))

    for receiver in payload.receivers:
        lines.append(_edge(payload.channel, receiver, payload.message_name))

    if payload.reply_message_name:
        for receiver in payload.receivers:
            lines.append(
                _edge(receiver, payload.channel, payload.reply_message_name, REPLY_EDGE_STYLE)
            )

    if not payload.omit_payloads:
        blocks = [(payload.message_name, payload.message)]
        if payload.reply_message_name:
            blocks.append((payload.reply_message_name, payload.reply_message or ""))

        for name, body in blocks:
            if not name:
                continue
            lines.append("")
            lines.extend(
                _markdown(_quote(f"{name} payload"), [f"### {name}", "```json", *body.split("\n"), "```"],
                          D2_STYLE_MAP["message"])
            )
            lines.append(_edge(payload.channel, f"{name} payload", style=REPLY_EDGE_STYLE, arrow="--"))

    return "\n".join(lines) + "\n"


def render_service_services(payload: ServiceServicesPayload, direction: str = "right") -> str:
    lines = _header(direction)

    if not payload.main_service.name:
        return "\n".join(lines) + "\n"

    lines.extend(_service_node(payload.main_service, "main_service"))
    lines.append("")

    for neighbor in payload.neighbor_services:
        lines.extend(_service_node(neighbor))
        lines.append("")

    for conn in payload.connections:
        lines.append(_connection_edge(conn))

    return "\n".join(lines) + "\n"

