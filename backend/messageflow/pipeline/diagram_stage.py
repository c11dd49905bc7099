import logging
import os
import shutil
import threading
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import List, Optional, Tuple

from messageflow.compiler.projection import extract_unique_channels
from messageflow.compiler.types import FormatMode, FormatOptions
from messageflow.config import MESSAGEFLOW_MAX_WORKERS
from messageflow.pipeline.context import DocsContext
from messageflow.pipeline.docs import sanitize_anchor
from messageflow.pipeline.stage import PipelineStage

logger = logging.getLogger(__name__)

DiagramJob = Tuple[str, FormatOptions]


def diagram_jobs(context: DocsContext) -> List[DiagramJob]:
    """(file name, view options) for every diagram the docs reference."""
    jobs: List[DiagramJob] = [
        ("context.svg", FormatOptions(mode=FormatMode.CONTEXT_SERVICES)),
    ]

    for service in context.schema.services:
        jobs.append(
            (
                f"service_{sanitize_anchor(service.name)}.svg",
                FormatOptions(mode=FormatMode.SERVICE_SERVICES, service=service.name),
            )
        )

    for channel in extract_unique_channels(context.schema):
        jobs.append(
            (
                f"channel_{sanitize_anchor(channel)}.svg",
                FormatOptions(
                    mode=FormatMode.CHANNEL_SERVICES,
                    channel=channel,
                    omit_payloads=True,
                ),
            )
        )

    unique: List[DiagramJob] = []
    seen = set()
    for filename, options in jobs:
        if filename in seen:
            # sanitize_anchor is many-to-one: keep the first view for a file name
            logger.warning(
                "diagram %s is produced more than once, skipping %s %s",
                filename,
                getattr(options.mode, "value", options.mode),
                options.channel or options.service,
            )
            continue
        seen.add(filename)
        unique.append((filename, options))

    return unique


class DiagramStage(PipelineStage):
    """
    Renders all diagrams concurrently into <output>/diagrams.

    The directory is recreated on every run. The first failing job cancels
    the jobs that have not started yet and its error is raised; files
    already written stay on disk.
    """

    name = "diagrams"

    def __init__(self, max_workers: int = MESSAGEFLOW_MAX_WORKERS):
        self.max_workers = max(1, max_workers)

    def run(self, context: DocsContext) -> None:
        if os.path.exists(context.diagrams_dir):
            shutil.rmtree(context.diagrams_dir)
        os.makedirs(context.diagrams_dir)

        jobs = diagram_jobs(context)
        cancel = threading.Event()

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                pool.submit(self._render, context, filename, options, cancel)
                for filename, options in jobs
            ]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)

            failed = next((f for f in futures if f in done and f.exception() is not None), None)
            if failed is not None:
                cancel.set()
                for future in pending:
                    future.cancel()
                raise failed.exception()

        context.diagrams = [f.result() for f in futures if f.result() is not None]
        logger.info("rendered %d diagram(s)", len(context.diagrams))

    def _render(
        self,
        context: DocsContext,
        filename: str,
        options: FormatOptions,
        cancel: threading.Event,
    ) -> Optional[str]:
        if cancel.is_set():
            return None

        try:
            formatted = context.target.format_schema(context.schema, options)
            image = context.target.render_schema(formatted)
        except Exception:
            # later jobs must see the cancellation before this future completes
            cancel.set()
            raise

        path = os.path.join(context.diagrams_dir, filename)
        with open(path, "wb") as f:
            f.write(image)

        logger.debug("wrote %s", path)
        return path
