import logging

from messageflow.compiler.diff import append_changelog
from messageflow.pipeline.context import DocsContext
from messageflow.pipeline.stage import PipelineStage
from messageflow.store import get_store

logger = logging.getLogger(__name__)


class MetadataStage(PipelineStage):
    """Compares against the previous snapshot and persists the new history."""

    name = "metadata"

    def run(self, context: DocsContext) -> None:
        if context.store is None:
            context.store = get_store(context.output_dir)

        previous = context.store.load()
        context.metadata = append_changelog(previous, context.schema)
        context.store.save(context.metadata)

        logger.info("history holds %d changelog(s)", len(context.metadata.changelogs))
