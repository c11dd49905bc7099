from abc import ABC, abstractmethod

from messageflow.pipeline.context import DocsContext


class PipelineStage(ABC):
    name: str

    @abstractmethod
    def run(self, context: DocsContext) -> None:
        """
        Must:
        - read from context
        - write to context
        - NEVER call other stages
        """
        pass
