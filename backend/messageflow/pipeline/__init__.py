from messageflow.pipeline.context import DocsContext
from messageflow.pipeline.controller import DocsController
from messageflow.pipeline.diagram_stage import DiagramStage
from messageflow.pipeline.docs import extract_channel_info, sanitize_anchor
from messageflow.pipeline.metadata_stage import MetadataStage
from messageflow.pipeline.readme_stage import ReadmeStage

__all__ = [
    "DocsContext",
    "DocsController",
    "DiagramStage",
    "MetadataStage",
    "ReadmeStage",
    "extract_channel_info",
    "sanitize_anchor",
]
