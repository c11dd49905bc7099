from .schema import Action, Channel, Message, Operation, Schema, Service
from .changelog import Change, Changelog, ChangeType, Metadata
from .errors import (
    ExtractionError,
    MessageflowError,
    MetadataError,
    PipelineError,
    RenderError,
    UnsupportedFormatError,
    UnsupportedFormatModeError,
)

__all__ = [
    "Action",
    "Channel",
    "Message",
    "Operation",
    "Schema",
    "Service",
    "Change",
    "Changelog",
    "ChangeType",
    "Metadata",
    "ExtractionError",
    "MessageflowError",
    "MetadataError",
    "PipelineError",
    "RenderError",
    "UnsupportedFormatError",
    "UnsupportedFormatModeError",
]
