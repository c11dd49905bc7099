import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from messageflow.api.routes import router
from messageflow.config import configure_logging
from messageflow.db import session as db_session
from messageflow.db.models import Base
from messageflow.ir.errors import (
    MetadataError,
    RenderError,
    UnsupportedFormatError,
    UnsupportedFormatModeError,
)

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Message Flow",
    version="0.1.0",
)

# Middleware FIRST
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes AFTER middleware
app.include_router(router)


# ============================
# Error mapping
# ============================

@app.exception_handler(UnsupportedFormatModeError)
@app.exception_handler(UnsupportedFormatError)
def unsupported_format(request: Request, exc: Exception):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RenderError)
def render_failed(request: Request, exc: RenderError):
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(MetadataError)
def metadata_failed(request: Request, exc: MetadataError):
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.on_event("startup")
def startup():
    if db_session.engine is None:
        logger.info("no database configured, changelog endpoints disabled")
        return

    retries = 5
    delay = 2

    for attempt in range(retries):
        try:
            Base.metadata.create_all(bind=db_session.engine)
            logger.info("database connected")
            return
        except OperationalError:
            logger.warning("waiting for database... (%d/%d)", attempt + 1, retries)
            time.sleep(delay)

    # keep serving the stateless endpoints
    logger.error("database not ready, running without persistence")
