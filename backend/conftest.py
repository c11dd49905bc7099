"""
Shared fixtures: a small three-service system and stand-in renderers.
"""

import threading

import pytest

from messageflow.ir.errors import RenderError
from messageflow.ir.schema import Action, Channel, Message, Operation, Schema, Service

USER_CREATED = Message(name="UserCreated", payload='{\n  "id": "string"\n}')
NOTIFICATION_SENT = Message(name="NotificationSent", payload='{\n  "to": "string"\n}')
USER_INFO_REQUEST = Message(name="UserInfoRequest", payload='{\n  "id": "string"\n}')
USER_INFO_REPLY = Message(
    name="UserInfoReply",
    payload='{\n  "email": "string",\n  "id": "string"\n}',
)


def op(action, channel, *messages, reply=None):
    """Operation shorthand: reply is a (channel name, [messages]) tuple."""
    reply_channel = None
    if reply is not None:
        reply_channel = Channel(name=reply[0], messages=list(reply[1]))
    return Operation(
        action=Action(action),
        channel=Channel(name=channel, messages=list(messages)),
        reply=reply_channel,
    )


@pytest.fixture()
def notification_service():
    return Service(
        name="Notification Service",
        description="Sends notifications to users when something happens in their account",
        operations=[
            op("receive", "user.created", USER_CREATED),
            op("send", "notification.sent", NOTIFICATION_SENT),
        ],
    )


@pytest.fixture()
def user_service():
    return Service(
        name="User Service",
        description="Manages users",
        operations=[
            op("send", "user.created", USER_CREATED),
            op(
                "receive",
                "user.info.request",
                USER_INFO_REQUEST,
                reply=("user.info.reply", [USER_INFO_REPLY]),
            ),
        ],
    )


@pytest.fixture()
def analytics_service():
    return Service(
        name="Analytics Service",
        operations=[
            op("receive", "notification.sent", NOTIFICATION_SENT),
            op(
                "send",
                "user.info.request",
                USER_INFO_REQUEST,
                reply=("user.info.reply", [USER_INFO_REPLY]),
            ),
        ],
    )


@pytest.fixture()
def system(notification_service, user_service, analytics_service):
    """Unsorted on purpose."""
    return Schema(services=[notification_service, user_service, analytics_service])


class FakeRenderer:
    def __init__(self):
        self.sources = []
        self._lock = threading.Lock()

    def render(self, source: bytes) -> bytes:
        with self._lock:
            self.sources.append(source)
        return b"<svg>" + source[:16] + b"</svg>"


class FailingRenderer:
    def render(self, source: bytes) -> bytes:
        raise RenderError("renderer unavailable")


@pytest.fixture()
def fake_renderer():
    return FakeRenderer()


@pytest.fixture()
def failing_renderer():
    return FailingRenderer()
