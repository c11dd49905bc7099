import logging
import os

from dotenv import load_dotenv

# Load .env from project root
load_dotenv()

MESSAGEFLOW_TARGET = os.getenv("MESSAGEFLOW_TARGET", "d2")
MESSAGEFLOW_RENDERER = os.getenv("MESSAGEFLOW_RENDERER", "d2")  # d2 | kroki

D2_BIN = os.getenv("D2_BIN", "d2")
D2_LAYOUT = os.getenv("D2_LAYOUT", "elk")
D2_PAD = int(os.getenv("D2_PAD", "5"))
D2_THEME = int(os.getenv("D2_THEME", "0"))
D2_DIRECTION = os.getenv("D2_DIRECTION", "right")

KROKI_URL = os.getenv("KROKI_URL", "https://kroki.io")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "60"))

MESSAGEFLOW_METADATA_FILE = os.getenv("MESSAGEFLOW_METADATA_FILE", "messageflow.json")
MESSAGEFLOW_DATABASE_URL = os.getenv("MESSAGEFLOW_DATABASE_URL", "")
MESSAGEFLOW_MAX_WORKERS = int(os.getenv("MESSAGEFLOW_MAX_WORKERS", "8"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
