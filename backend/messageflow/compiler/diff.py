import difflib
import json
import logging
from datetime import datetime, timezone
from typing import List, Optional

from messageflow.compiler.keys import operation_key
from messageflow.ir.changelog import Change, Changelog, ChangeType, Metadata
from messageflow.ir.schema import Message, Operation, Schema, Service

logger = logging.getLogger(__name__)


def compare_schemas(
    previous: Schema,
    current: Schema,
    now: Optional[datetime] = None,
) -> Changelog:
    """
    Compare two schema snapshots and return the semantic changes between them.

    Pure: every change of one call shares the same timestamp, which is the
    only input not derived from the schemas.
    """
    now = now or datetime.now(timezone.utc)
    changes: List[Change] = []

    previous_services = {svc.name: svc for svc in previous.services}
    current_services = {svc.name: svc for svc in current.services}

    # -------------------------
    # Service level
    # -------------------------
    for name in current_services:
        if name not in previous_services:
            changes.append(
                Change(
                    type=ChangeType.ADDED,
                    category="service",
                    name=name,
                    details=f"'{name}' was added",
                    timestamp=now,
                )
            )

    for name in previous_services:
        if name not in current_services:
            changes.append(
                Change(
                    type=ChangeType.REMOVED,
                    category="service",
                    name=name,
                    details=f"'{name}' was removed",
                    timestamp=now,
                )
            )

    # -------------------------
    # Operation level
    # -------------------------
    for name, old_service in previous_services.items():
        new_service = current_services.get(name)
        if new_service is None:
            continue
        changes.extend(_compare_operations(old_service, new_service, now))

    return Changelog(date=now, changes=changes)


def _compare_operations(
    old_service: Service,
    new_service: Service,
    timestamp: datetime,
) -> List[Change]:
    changes: List[Change] = []
    service_name = new_service.name

    old_ops = {operation_key(op): op for op in old_service.operations}
    new_ops = {operation_key(op): op for op in new_service.operations}

    for key, new_op in new_ops.items():
        if key in old_ops:
            continue
        changes.append(
            Change(
                type=ChangeType.ADDED,
                category="channel",
                name=f"{service_name}:{key}",
                details=(
                    f"'{new_op.action.value}' on channel '{new_op.channel.name}' "
                    f"was added to service '{service_name}'"
                ),
                timestamp=timestamp,
            )
        )

    for key, old_op in old_ops.items():
        new_op = new_ops.get(key)
        if new_op is None:
            changes.append(
                Change(
                    type=ChangeType.REMOVED,
                    category="channel",
                    name=f"{service_name}:{key}",
                    details=(
                        f"'{old_op.action.value}' on channel '{old_op.channel.name}' "
                        f"was removed from service '{service_name}'"
                    ),
                    timestamp=timestamp,
                )
            )
            continue

        changes.extend(
            _compare_matched_operation(service_name, key, old_op, new_op, timestamp)
        )

    return changes


def _compare_matched_operation(
    service_name: str,
    key: str,
    old_op: Operation,
    new_op: Operation,
    timestamp: datetime,
) -> List[Change]:
    changes: List[Change] = []
    where = (
        f"operation '{new_op.action.value}' on channel '{new_op.channel.name}' "
        f"in service '{service_name}'"
    )

    if old_op.channel.messages != new_op.channel.messages:
        changes.append(
            Change(
                type=ChangeType.CHANGED,
                category="message",
                name=f"{service_name}:{key}",
                details=f"Messages changed for {where}",
                diff=diff_messages(old_op.channel.messages, new_op.channel.messages),
                timestamp=timestamp,
            )
        )

    reply_name = f"{service_name}:{key}:reply"

    if old_op.reply is not None and new_op.reply is not None:
        if old_op.reply.messages != new_op.reply.messages:
            changes.append(
                Change(
                    type=ChangeType.CHANGED,
                    category="message",
                    name=reply_name,
                    details=f"Reply messages changed for {where}",
                    diff=diff_messages(old_op.reply.messages, new_op.reply.messages),
                    timestamp=timestamp,
                )
            )
    elif old_op.reply is not None:
        changes.append(
            Change(
                type=ChangeType.REMOVED,
                category="channel",
                name=reply_name,
                details=f"Reply channel removed for {where}",
                timestamp=timestamp,
            )
        )
    elif new_op.reply is not None:
        changes.append(
            Change(
                type=ChangeType.ADDED,
                category="channel",
                name=reply_name,
                details=f"Reply channel added for {where}",
                timestamp=timestamp,
            )
        )

    return changes


def diff_messages(old: List[Message], new: List[Message]) -> str:
    """Line diff of two message lists, previous on the '-' side."""

    def lines(messages: List[Message]) -> List[str]:
        dumped = [_expand_message(message) for message in messages]
        return json.dumps(dumped, indent=2, sort_keys=True).splitlines()

    return "\n".join(
        difflib.unified_diff(
            lines(old),
            lines(new),
            fromfile="previous",
            tofile="current",
            lineterm="",
        )
    )


def _expand_message(message: Message) -> dict:
    # payloads are JSON text; diff their structure rather than one long string
    try:
        payload = json.loads(message.payload) if message.payload else ""
    except json.JSONDecodeError:
        payload = message.payload
    return {"name": message.name, "payload": payload}


# ============================================================
# Changelog history
# ============================================================

def append_changelog(
    previous: Optional[Metadata],
    current: Schema,
    now: Optional[datetime] = None,
) -> Metadata:
    """
    Build the next Metadata from the previously persisted one.

    The current schema becomes the snapshot; a changelog is appended only
    when it carries at least one change. Without previous metadata there is
    nothing to compare against and the history starts empty.
    """
    if previous is None:
        return Metadata(snapshot=current, changelogs=[])

    changelog = compare_schemas(previous.snapshot, current, now=now)
    history = list(previous.changelogs)

    if changelog.changes:
        history.append(changelog)
        logger.info("changelog recorded with %d change(s)", len(changelog.changes))
    else:
        logger.info("no semantic changes since the last snapshot")

    return Metadata(snapshot=current, changelogs=history)
