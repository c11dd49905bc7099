import requests

from messageflow.config import HTTP_TIMEOUT, KROKI_URL
from messageflow.ir.errors import RenderError


class KrokiRenderer:
    """Renders D2 source to SVG through a Kroki server."""

    def __init__(self, base_url: str = KROKI_URL, timeout: float = HTTP_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def render(self, source: bytes) -> bytes:
        url = f"{self.base_url}/d2/svg"

        try:
            response = requests.post(
                url,
                data=source,
                headers={"Content-Type": "text/plain"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise RenderError(f"kroki rendering failed: {e}") from e

        return response.content
