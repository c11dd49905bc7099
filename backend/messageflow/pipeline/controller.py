import logging
import os
from typing import List, Optional

from messageflow.compiler.render_d2 import D2Target
from messageflow.ir.errors import PipelineError
from messageflow.ir.schema import Schema
from messageflow.pipeline.context import DocsContext
from messageflow.pipeline.diagram_stage import DiagramStage
from messageflow.pipeline.metadata_stage import MetadataStage
from messageflow.pipeline.readme_stage import ReadmeStage
from messageflow.pipeline.stage import PipelineStage
from messageflow.store.base import MetadataStore

logger = logging.getLogger(__name__)


class DocsController:
    """Runs the documentation stages in order; the first failure stops the run."""

    def __init__(self, stages: Optional[List[PipelineStage]] = None):
        if stages is None:
            stages = [MetadataStage(), DiagramStage(), ReadmeStage()]
        self.stages = stages

    def run(
        self,
        schema: Schema,
        target: D2Target,
        output_dir: str,
        title: str = "Message Flow",
        store: Optional[MetadataStore] = None,
    ) -> DocsContext:
        context = DocsContext(
            schema=schema,
            target=target,
            output_dir=output_dir,
            title=title,
            store=store,
        )

        try:
            os.makedirs(output_dir, exist_ok=True)
        except OSError as e:
            raise PipelineError("output", e) from e

        for stage in self.stages:
            logger.info("running stage %s", stage.name)
            try:
                stage.run(context)
            except Exception as e:
                raise PipelineError(stage.name, e) from e

        return context
