import os
from dataclasses import dataclass, field
from typing import List, Optional

from messageflow.compiler.render_d2 import D2Target
from messageflow.ir.changelog import Metadata
from messageflow.ir.schema import Schema
from messageflow.store.base import MetadataStore


@dataclass
class DocsContext:
    # Input (authoritative, already merged and sorted)
    schema: Schema
    target: D2Target
    output_dir: str
    title: str = "Message Flow"

    # Persistence; resolved from config when not given
    store: Optional[MetadataStore] = None

    # Produced by stages
    metadata: Optional[Metadata] = None
    diagrams: List[str] = field(default_factory=list)
    readme_path: Optional[str] = None

    @property
    def diagrams_dir(self) -> str:
        return os.path.join(self.output_dir, "diagrams")
