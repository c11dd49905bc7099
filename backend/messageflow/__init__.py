"""
messageflow: merge, diff and diagram AsyncAPI-described message flows.
"""

from messageflow.compiler import (
    D2Target,
    FormatMode,
    FormatOptions,
    append_changelog,
    compare_schemas,
    extract_unique_channels,
    infer_connections,
    merge_schemas,
    pick_target,
    project,
    sort_schema,
)
from messageflow.ir import (
    Action,
    Change,
    Changelog,
    ChangeType,
    Channel,
    Message,
    MessageflowError,
    Metadata,
    Operation,
    Schema,
    Service,
)

__version__ = "0.1.0"

__all__ = [
    "Action",
    "Change",
    "Changelog",
    "ChangeType",
    "Channel",
    "D2Target",
    "FormatMode",
    "FormatOptions",
    "Message",
    "MessageflowError",
    "Metadata",
    "Operation",
    "Schema",
    "Service",
    "append_changelog",
    "compare_schemas",
    "extract_unique_channels",
    "infer_connections",
    "merge_schemas",
    "pick_target",
    "project",
    "sort_schema",
]
