from messageflow.compiler.merge import merge_schemas
from messageflow.compiler.diff import append_changelog, compare_schemas
from messageflow.compiler.layout import sort_schema
from messageflow.compiler.projection import extract_unique_channels, project
from messageflow.compiler.relationships import infer_connections
from messageflow.compiler.render_d2 import D2Target
from messageflow.compiler.types import D2_TARGET, FormatMode, FormatOptions
from messageflow.config import D2_DIRECTION
from messageflow.ir.errors import MessageflowError


def pick_target(target_type: str, renderer=None) -> D2Target:
    if target_type == D2_TARGET:
        return D2Target(renderer=renderer, direction=D2_DIRECTION)
    raise MessageflowError(f"unknown target: {target_type}")

