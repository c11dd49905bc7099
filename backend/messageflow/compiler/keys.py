from messageflow.ir.schema import Channel, Operation


def _first_message_name(channel: Channel) -> str:
    if channel.messages:
        return channel.messages[0].name
    return ""


def operation_key(op: Operation) -> str:
    """
    Structural identity of an operation within a service.
    Shared by merge de-duplication and diff matching.
    """
    key = f"{op.action.value}-{op.channel.name}-{_first_message_name(op.channel)}"
    if op.reply is not None:
        key += f"-reply-{op.reply.name}-{_first_message_name(op.reply)}"
    return key
