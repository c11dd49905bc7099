from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from messageflow.ir.schema import Service

# Target type tags for formatted output
TargetType = str
D2_TARGET: TargetType = "d2"


class FormatMode(str, Enum):
    CONTEXT_SERVICES = "context_services"
    SERVICE_CHANNELS = "service_channels"
    CHANNEL_SERVICES = "channel_services"
    SERVICE_SERVICES = "service_services"


SUPPORTED_FORMAT_MODES = [
    FormatMode.SERVICE_CHANNELS,
    FormatMode.CHANNEL_SERVICES,
    FormatMode.CONTEXT_SERVICES,
    FormatMode.SERVICE_SERVICES,
]


@dataclass(frozen=True)
class FormatOptions:
    mode: Union[FormatMode, str]
    service: str = ""
    channel: str = ""
    omit_payloads: bool = False


@dataclass
class Connection:
    source: str
    target: str
    label: str  # Pub | Req | Pub/Req
    bidirectional: bool = False

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.target)


@dataclass
class ContextServicesPayload:
    services: List[Service] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)


@dataclass
class ChannelServicesPayload:
    channel: str
    message: str = ""
    message_name: str = ""
    reply_message: Optional[str] = None
    reply_message_name: Optional[str] = None
    senders: List[str] = field(default_factory=list)
    receivers: List[str] = field(default_factory=list)
    omit_payloads: bool = False


@dataclass
class ServiceServicesPayload:
    main_service: Service
    neighbor_services: List[Service] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)


ViewPayload = Union[
    ContextServicesPayload,
    Service,
    ChannelServicesPayload,
    ServiceServicesPayload,
]


@dataclass(frozen=True)
class FormattedSchema:
    type: TargetType
    data: bytes


@dataclass(frozen=True)
class TargetCapabilities:
    format: bool
    render: bool
