"""
AsyncAPI source

Extracts one service from one AsyncAPI document (v2 or v3, YAML or JSON,
local file or http(s) URL). Only what the message-flow model needs is read:
service title/description, operations, channel addresses, message names and
payload shapes. Documents are not validated.
"""

import logging
import os
from typing import Any, List, Optional, Tuple
from urllib.parse import unquote, urljoin

import requests
import yaml

from messageflow.compiler.normalize import normalize_payload
from messageflow.config import HTTP_TIMEOUT
from messageflow.ir.errors import ExtractionError
from messageflow.ir.schema import Action, Channel, Message, Operation, Schema, Service

logger = logging.getLogger(__name__)

MAX_REF_DEPTH = 32

# v2 verbs are written from the client's point of view
V2_ACTIONS = (
    ("subscribe", Action.SEND),
    ("publish", Action.RECEIVE),
)


def _is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


class AsyncAPISource:
    def __init__(self, path: str):
        self.path = path.strip()
        self._documents: dict[str, Any] = {}

    # ============================================================
    # Public
    # ============================================================

    def extract_schema(self) -> Schema:
        document = self._document(self.path)
        if not isinstance(document, dict):
            raise ExtractionError(self.path, "document is not a mapping")

        info = self._mapping(document.get("info") or {}, "info")
        title = info.get("title")
        if not title:
            raise ExtractionError(self.path, "info.title is required")

        version = str(document.get("asyncapi", ""))
        if version.startswith("2"):
            operations = self._operations_v2(document)
        else:
            operations = self._operations_v3(document)

        logger.info("extracted %d operation(s) for %s from %s", len(operations), title, self.path)

        return Schema(
            services=[
                Service(
                    name=title,
                    description=info.get("description") or "",
                    operations=operations,
                )
            ]
        )

    # ============================================================
    # Documents & references
    # ============================================================

    def _document(self, location: str) -> Any:
        if location not in self._documents:
            self._documents[location] = self._load(location)
        return self._documents[location]

    def _load(self, location: str) -> Any:
        try:
            if _is_url(location):
                response = requests.get(location, timeout=HTTP_TIMEOUT)
                response.raise_for_status()
                text = response.text
            else:
                with open(location, encoding="utf-8") as f:
                    text = f.read()
        except (OSError, requests.RequestException) as e:
            raise ExtractionError(self.path, f"cannot read {location}: {e}") from e

        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ExtractionError(self.path, f"malformed document {location}: {e}") from e

    def _resolve(self, node: Any, base: str) -> Tuple[Any, str, str]:
        """
        Follow $ref chains.
        Returns (node, key of the last reference or "", document location).
        """
        key = ""
        depth = 0

        while isinstance(node, dict) and "$ref" in node:
            depth += 1
            if depth > MAX_REF_DEPTH:
                raise ExtractionError(self.path, f"reference cycle at {node['$ref']}")

            ref = str(node["$ref"])
            target, _, pointer = ref.partition("#")

            if target:
                base = urljoin(base, target) if _is_url(base) else os.path.join(
                    os.path.dirname(base), target
                )

            node = self._pointer(self._document(base), pointer, ref)
            if pointer:
                key = unquote(pointer.rstrip("/").split("/")[-1]).replace("~1", "/").replace("~0", "~")

        return node, key, base

    def _mapping(self, node: Any, what: str) -> dict:
        if not isinstance(node, dict):
            raise ExtractionError(self.path, f"{what} is not a mapping")
        return node

    def _pointer(self, document: Any, pointer: str, ref: str) -> Any:
        node = document
        for raw in pointer.split("/")[1:]:
            part = unquote(raw).replace("~1", "/").replace("~0", "~")
            if isinstance(node, dict) and part in node:
                node = node[part]
            elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
                node = node[int(part)]
            else:
                raise ExtractionError(self.path, f"unresolved reference {ref}")
        return node

    def _deref_schema(self, node: Any, base: str, depth: int = 0) -> Any:
        """Payload schema with nested references inlined (properties and items)."""
        node, _, base = self._resolve(node, base)
        if not isinstance(node, dict):
            return node
        if depth > MAX_REF_DEPTH:
            return {"type": "object"}

        resolved = dict(node)
        if isinstance(node.get("properties"), dict):
            resolved["properties"] = {
                name: self._deref_schema(prop, base, depth + 1)
                for name, prop in node["properties"].items()
            }
        if node.get("items") is not None:
            resolved["items"] = self._deref_schema(node["items"], base, depth + 1)
        return resolved

    # ============================================================
    # Messages
    # ============================================================

    def _message(self, node: Any, base: str) -> Message:
        message, key, base = self._resolve(node, base)
        if not isinstance(message, dict):
            raise ExtractionError(self.path, f"message {key or '?'} is not a mapping")

        payload = message.get("payload")
        if isinstance(payload, dict) and "schemaFormat" in payload and "schema" in payload:
            payload = payload["schema"]

        schema = self._deref_schema(payload, base) if payload is not None else None

        return Message(
            name=message.get("name") or message.get("messageId") or key,
            payload=normalize_payload(schema),
        )

    def _messages(
        self, refs: Any, base: str, channel: Optional[dict], channel_base: str
    ) -> List[Message]:
        if refs:
            if not isinstance(refs, list):
                raise ExtractionError(self.path, "messages is not a list")
            return [self._message(ref, base) for ref in refs]

        # operation without explicit messages: everything the channel carries
        channel_messages = self._mapping((channel or {}).get("messages") or {}, "channel messages")
        messages = []
        for key, node in channel_messages.items():
            message = self._message(node, channel_base)
            if not message.name:
                message = message.model_copy(update={"name": key})
            messages.append(message)
        return messages

    # ============================================================
    # AsyncAPI 3
    # ============================================================

    def _channel_v3(self, node: Any, base: str) -> Tuple[dict, str, str]:
        if node is None:
            raise ExtractionError(self.path, "operation without channel")

        channel, key, channel_base = self._resolve(node, base)
        if not isinstance(channel, dict):
            raise ExtractionError(self.path, f"channel {key or '?'} is not a mapping")

        return channel, channel.get("address") or key, channel_base

    def _operations_v3(self, document: dict) -> List[Operation]:
        operations = []

        operations_node = self._mapping(document.get("operations") or {}, "operations")
        for op_id, raw in operations_node.items():
            op, _, base = self._resolve(raw, self.path)
            self._mapping(op, f"operation {op_id}")

            try:
                action = Action(op.get("action"))
            except ValueError:
                raise ExtractionError(
                    self.path, f"operation {op_id} has invalid action {op.get('action')!r}"
                ) from None

            channel, channel_name, channel_base = self._channel_v3(op.get("channel"), base)
            primary = Channel(
                name=channel_name,
                messages=self._messages(op.get("messages"), base, channel, channel_base),
            )

            reply = None
            if op.get("reply"):
                reply_node, _, reply_base = self._resolve(op["reply"], base)
                self._mapping(reply_node, f"reply of operation {op_id}")
                if reply_node.get("channel") is not None:
                    reply_channel, reply_name, reply_channel_base = self._channel_v3(
                        reply_node["channel"], reply_base
                    )
                else:
                    reply_channel, reply_name, reply_channel_base = channel, channel_name, channel_base
                reply = Channel(
                    name=reply_name,
                    messages=self._messages(
                        reply_node.get("messages"), reply_base, reply_channel, reply_channel_base
                    ),
                )

            operations.append(Operation(action=action, channel=primary, reply=reply))

        return operations

    # ============================================================
    # AsyncAPI 2
    # ============================================================

    def _operations_v2(self, document: dict) -> List[Operation]:
        operations = []

        channels_node = self._mapping(document.get("channels") or {}, "channels")
        for channel_name, raw in channels_node.items():
            channel, _, base = self._resolve(raw, self.path)
            self._mapping(channel, f"channel {channel_name}")

            for verb, action in V2_ACTIONS:
                if not channel.get(verb):
                    continue

                op, _, op_base = self._resolve(channel[verb], base)
                self._mapping(op, f"{verb} operation of channel {channel_name}")
                raw_message = op.get("message")
                message, _, message_base = self._resolve(raw_message, op_base)

                if isinstance(message, dict) and "oneOf" in message:
                    if not isinstance(message["oneOf"], list):
                        raise ExtractionError(self.path, f"oneOf of channel {channel_name} is not a list")
                    refs, refs_base = message["oneOf"], message_base
                elif message:
                    refs, refs_base = [raw_message], op_base
                else:
                    refs, refs_base = [], op_base

                operations.append(
                    Operation(
                        action=action,
                        channel=Channel(
                            name=channel_name,
                            messages=[self._message(ref, refs_base) for ref in refs],
                        ),
                    )
                )

        return operations
