from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator


class Action(str, Enum):
    SEND = "send"
    RECEIVE = "receive"


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    payload: str = ""


class Channel(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    messages: List[Message] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _accept_single_message(cls, data: Any) -> Any:
        # Older snapshots stored one "message" per channel
        if isinstance(data, dict) and "message" in data and "messages" not in data:
            data = dict(data)
            message = data.pop("message")
            data["messages"] = [message] if message else []
        return data


class Operation(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Action
    channel: Channel
    reply: Optional[Channel] = None

    @model_serializer(mode="wrap")
    def _omit_missing_reply(self, handler):
        data = handler(self)
        if self.reply is None:
            data.pop("reply", None)
        return data


class Service(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    description: str = ""
    operations: List[Operation] = Field(default_factory=list)

    @model_serializer(mode="wrap")
    def _omit_empty_description(self, handler):
        data = handler(self)
        if not self.description:
            data.pop("description", None)
        return data


class Schema(BaseModel):
    """Normalized message-flow model: the set of services of one system."""

    model_config = ConfigDict(frozen=True)

    services: List[Service] = Field(default_factory=list)

    def service(self, name: str) -> Optional[Service]:
        for service in self.services:
            if service.name == name:
                return service
        return None
