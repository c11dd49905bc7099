from typing import List, Optional

from messageflow.compiler.normalize import format_description
from messageflow.compiler.relationships import infer_connections
from messageflow.compiler.types import (
    SUPPORTED_FORMAT_MODES,
    ChannelServicesPayload,
    ContextServicesPayload,
    FormatMode,
    FormatOptions,
    ServiceServicesPayload,
    ViewPayload,
)
from messageflow.ir.errors import UnsupportedFormatModeError
from messageflow.ir.schema import Action, Message, Schema, Service


def project(schema: Schema, options: FormatOptions) -> ViewPayload:
    """Derive the payload of one view from the schema. Read-only."""
    try:
        mode = FormatMode(options.mode)
    except ValueError:
        raise UnsupportedFormatModeError(options.mode, SUPPORTED_FORMAT_MODES) from None

    if mode == FormatMode.CONTEXT_SERVICES:
        return prepare_context_services_payload(schema)
    if mode == FormatMode.SERVICE_CHANNELS:
        return prepare_service_channels_payload(schema, options.service)
    if mode == FormatMode.CHANNEL_SERVICES:
        return prepare_channel_services_payload(
            schema, options.channel, options.omit_payloads
        )
    return prepare_service_services_payload(schema, options.service)


# ============================================================
# Service resolution
# ============================================================

def resolve_service(schema: Schema, service_name: str) -> Service:
    """
    Named service, or the only service when no name is given.
    Unknown names resolve to an empty service rather than an error.
    """
    if not service_name and len(schema.services) == 1:
        return schema.services[0]

    return schema.service(service_name) or Service()


# ============================================================
# Views
# ============================================================

def prepare_context_services_payload(schema: Schema) -> ContextServicesPayload:
    services = [
        service.model_copy(
            update={"description": format_description(service.description)}
        )
        for service in schema.services
    ]

    return ContextServicesPayload(
        services=services,
        connections=infer_connections(schema),
    )


def prepare_service_channels_payload(schema: Schema, service_name: str) -> Service:
    return resolve_service(schema, service_name)


def prepare_channel_services_payload(
    schema: Schema,
    channel: str,
    omit_payloads: bool = False,
) -> ChannelServicesPayload:
    payload = ChannelServicesPayload(channel=channel, omit_payloads=omit_payloads)

    for service in schema.services:
        for op in service.operations:
            primary_match = op.channel.name == channel
            reply_match = op.reply is not None and op.reply.name == channel

            if not primary_match and not reply_match:
                continue

            sends = op.action == Action.SEND
            if not primary_match:
                # replies flow back to the requester
                sends = not sends

            participants = payload.senders if sends else payload.receivers
            if service.name not in participants:
                participants.append(service.name)

            if primary_match:
                _offer_message(payload, _first(op.channel.messages))
                if op.reply is not None:
                    _offer_reply(payload, _first(op.reply.messages))
            else:
                _offer_message(payload, _first(op.reply.messages))

    if omit_payloads:
        payload.message = ""
        if payload.reply_message is not None:
            payload.reply_message = ""

    return payload


def _first(messages: List[Message]) -> Optional[Message]:
    return messages[0] if messages else None


def _offer_message(payload: ChannelServicesPayload, message: Optional[Message]):
    # the longest payload is taken as the most complete shape
    if message is None:
        return
    if len(payload.message) < len(message.payload):
        payload.message = message.payload
        payload.message_name = message.name


def _offer_reply(payload: ChannelServicesPayload, message: Optional[Message]):
    if message is None:
        return
    if payload.reply_message is None or len(payload.reply_message) < len(message.payload):
        payload.reply_message = message.payload
        payload.reply_message_name = message.name


def prepare_service_services_payload(
    schema: Schema,
    service_name: str,
) -> ServiceServicesPayload:
    main_service = resolve_service(schema, service_name)

    send_channels = set()
    receive_channels = set()

    for op in main_service.operations:
        if op.action == Action.SEND:
            send_channels.add(op.channel.name)
        elif op.action == Action.RECEIVE:
            receive_channels.add(op.channel.name)

    neighbors: List[Service] = []
    seen = set()

    for service in schema.services:
        if service.name == main_service.name or service.name in seen:
            continue

        is_neighbor = any(
            (op.action == Action.SEND and op.channel.name in receive_channels)
            or (op.action == Action.RECEIVE and op.channel.name in send_channels)
            for op in service.operations
        )

        if is_neighbor:
            neighbors.append(service)
            seen.add(service.name)

    connections = []
    if main_service.name:
        local = Schema(services=[main_service, *neighbors])
        connections = [
            conn for conn in infer_connections(local)
            if main_service.name in conn.key
        ]

    return ServiceServicesPayload(
        main_service=main_service,
        neighbor_services=neighbors,
        connections=connections,
    )


# ============================================================
# Channel discovery
# ============================================================

def extract_unique_channels(schema: Schema) -> List[str]:
    channels = set()

    for service in schema.services:
        for op in service.operations:
            channels.add(op.channel.name)
            if op.reply is not None:
                channels.add(op.reply.name)

    return sorted(channels)
