from messageflow.config import MESSAGEFLOW_RENDERER
from messageflow.ir.errors import MessageflowError
from messageflow.renderer.d2_cli import D2CliRenderer
from messageflow.renderer.kroki import KrokiRenderer


def get_renderer(kind: str = MESSAGEFLOW_RENDERER):
    if kind == "kroki":
        return KrokiRenderer()
    if kind == "d2":
        return D2CliRenderer()
    raise MessageflowError(f"unknown renderer: {kind}")


__all__ = ["D2CliRenderer", "KrokiRenderer", "get_renderer"]
