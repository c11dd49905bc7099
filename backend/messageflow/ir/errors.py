from typing import Iterable


class MessageflowError(Exception):
    """Base class for every error raised by messageflow."""


class ExtractionError(MessageflowError):
    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class UnsupportedFormatModeError(MessageflowError):
    def __init__(self, given: str, expected: Iterable[str]):
        self.given = getattr(given, "value", given)
        self.expected = [getattr(mode, "value", mode) for mode in expected]
        super().__init__(
            f"{self.given} format mode is not supported, "
            f"[{' '.join(self.expected)}] expected"
        )


class UnsupportedFormatError(MessageflowError):
    def __init__(self, given: str, expected: str):
        self.given = given
        self.expected = expected
        super().__init__(f"{given} format is not supported, {expected} expected")


class RenderError(MessageflowError):
    pass


class MetadataError(MessageflowError):
    pass


class PipelineError(MessageflowError):
    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} failed: {cause}")
