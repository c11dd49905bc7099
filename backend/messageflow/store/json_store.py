import json
import logging
import os
from typing import Optional

from messageflow.config import MESSAGEFLOW_METADATA_FILE
from messageflow.ir.changelog import Metadata
from messageflow.ir.errors import MetadataError
from messageflow.store.base import MetadataStore

logger = logging.getLogger(__name__)


class JsonMetadataStore(MetadataStore):
    def __init__(self, output_dir: str, filename: str = MESSAGEFLOW_METADATA_FILE):
        self.output_dir = output_dir
        self.filename = filename

    @property
    def path(self) -> str:
        return os.path.join(self.output_dir, self.filename)

    def load(self) -> Optional[Metadata]:
        if not os.path.exists(self.path):
            return None

        try:
            with open(self.path, encoding="utf-8") as f:
                metadata = Metadata.model_validate_json(f.read())
        except (OSError, ValueError) as e:
            raise MetadataError(f"failed to read {self.path}: {e}") from e

        logger.debug("loaded %d changelog(s) from %s", len(metadata.changelogs), self.path)
        return metadata

    def save(self, metadata: Metadata) -> None:
        document = metadata.model_dump(mode="json", by_alias=True)

        try:
            os.makedirs(self.output_dir, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
        except OSError as e:
            raise MetadataError(f"failed to write {self.path}: {e}") from e

        logger.info("wrote %s", self.path)
