import logging
from typing import Iterable

from messageflow.compiler.merge import merge_schemas
from messageflow.ir.schema import Schema
from messageflow.source.asyncapi import AsyncAPISource

logger = logging.getLogger(__name__)


def load_schema(paths: Iterable[str]) -> Schema:
    """
    Extract every AsyncAPI document in order and merge them.
    The first failing document aborts the load.
    """
    schemas = []
    for path in paths:
        path = path.strip()
        if not path:
            continue
        schemas.append(AsyncAPISource(path).extract_schema())

    logger.info("loaded %d schema(s)", len(schemas))
    return merge_schemas(*schemas)


__all__ = ["AsyncAPISource", "load_schema"]
