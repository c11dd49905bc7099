"""
Helpers shared by the documentation stages.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from messageflow.ir.changelog import Changelog
from messageflow.ir.schema import Action, Message, Operation, Schema


def sanitize_anchor(name: str) -> str:
    anchor = name.lower().replace(" ", "-")
    for char in (".", "_", "{", "}"):
        anchor = anchor.replace(char, "")
    return anchor


@dataclass
class ChannelMessage:
    name: str
    payload: str
    direction: str  # request | reply | receive | send
    service: str


@dataclass
class ChannelInfo:
    messages: List[ChannelMessage] = field(default_factory=list)


def _first(messages: List[Message]) -> Optional[Message]:
    return messages[0] if messages else None


def _channel_message(message: Optional[Message], direction: str, service: str) -> ChannelMessage:
    if message is None:
        return ChannelMessage(name="", payload="", direction=direction, service=service)
    return ChannelMessage(
        name=message.name,
        payload=message.payload,
        direction=direction,
        service=service,
    )


def extract_channel_info(schema: Schema) -> Dict[str, ChannelInfo]:
    """
    Representative messages per (primary) channel:
    request and reply when any operation on the channel expects a reply,
    otherwise the first received message, otherwise the first sent one.
    """
    by_channel: Dict[str, List[Tuple[str, Operation]]] = {}
    for service in schema.services:
        for op in service.operations:
            by_channel.setdefault(op.channel.name, []).append((service.name, op))

    info: Dict[str, ChannelInfo] = {}

    for channel, operations in by_channel.items():
        channel_info = ChannelInfo()

        with_reply = [(svc, op) for svc, op in operations if op.reply is not None]
        if with_reply:
            svc, op = with_reply[0]
            channel_info.messages.append(_channel_message(_first(op.channel.messages), "request", svc))
            channel_info.messages.append(_channel_message(_first(op.reply.messages), "reply", svc))
        else:
            for action in (Action.RECEIVE, Action.SEND):
                match = next(((svc, op) for svc, op in operations if op.action == action), None)
                if match:
                    svc, op = match
                    channel_info.messages.append(
                        _channel_message(_first(op.channel.messages), action.value, svc)
                    )
                    break

        info[channel] = channel_info

    return info


def sort_changelogs(changelogs: List[Changelog]) -> List[Changelog]:
    """Newest first; changes inside each changelog by type, category, name."""
    ordered = sorted(changelogs, key=lambda c: c.date, reverse=True)
    return [
        changelog.model_copy(
            update={
                "changes": sorted(
                    changelog.changes,
                    key=lambda ch: (ch.type.value, ch.category, ch.name),
                )
            }
        )
        for changelog in ordered
    ]
