from abc import ABC, abstractmethod
from typing import Optional

from messageflow.ir.changelog import Metadata


class MetadataStore(ABC):
    """Where the latest schema snapshot and the changelog history live between runs."""

    @abstractmethod
    def load(self) -> Optional[Metadata]:
        """Previously saved Metadata, or None on the first run."""
        pass

    @abstractmethod
    def save(self, metadata: Metadata) -> None:
        pass
