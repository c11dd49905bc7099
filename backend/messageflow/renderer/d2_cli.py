import logging
import subprocess

from messageflow.config import D2_BIN, D2_LAYOUT, D2_PAD, D2_THEME
from messageflow.ir.errors import RenderError

logger = logging.getLogger(__name__)


class D2CliRenderer:
    """Renders D2 source to SVG with the local `d2` binary (stdin → stdout)."""

    def __init__(
        self,
        binary: str = D2_BIN,
        layout: str = D2_LAYOUT,
        pad: int = D2_PAD,
        theme: int = D2_THEME,
    ):
        self.binary = binary
        self.layout = layout
        self.pad = pad
        self.theme = theme

    def command(self) -> list[str]:
        return [
            self.binary,
            f"--layout={self.layout}",
            f"--pad={self.pad}",
            f"--theme={self.theme}",
            "-",
            "-",
        ]

    def render(self, source: bytes) -> bytes:
        try:
            result = subprocess.run(
                self.command(),
                input=source,
                capture_output=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise RenderError(f"d2 binary not found: {self.binary}") from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise RenderError(f"d2 exited with status {result.returncode}: {stderr}")

        logger.debug("d2 produced %d bytes", len(result.stdout))
        return result.stdout
