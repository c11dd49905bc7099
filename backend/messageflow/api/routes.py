import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from messageflow.compiler.diff import append_changelog, compare_schemas
from messageflow.compiler.layout import sort_schema
from messageflow.compiler.merge import merge_schemas
from messageflow.compiler.render_d2 import D2Target
from messageflow.compiler.types import FormatOptions
from messageflow.config import D2_DIRECTION
from messageflow.db import session as db_session
from messageflow.ir.changelog import Changelog
from messageflow.ir.schema import Schema
from messageflow.renderer import get_renderer
from messageflow.schemas import (
    ChangelogRequest,
    ChangelogResponse,
    DiffRequest,
    FormatRequest,
    FormatResponse,
    MergeRequest,
)
from messageflow.store.base import MetadataStore
from messageflow.store.sql_store import SqlMetadataStore

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================
# Dependencies
# ============================

def get_target() -> D2Target:
    return D2Target(renderer=get_renderer(), direction=D2_DIRECTION)


def get_metadata_store() -> MetadataStore:
    if db_session.engine is None:
        raise HTTPException(status_code=503, detail="no changelog database configured")
    return SqlMetadataStore(db_session.engine)


def _options(request: FormatRequest) -> FormatOptions:
    return FormatOptions(
        mode=request.mode,
        service=request.service,
        channel=request.channel,
        omit_payloads=request.omit_payloads,
    )


# ============================
# Schemas
# ============================

@router.post("/merge", response_model=Schema)
def merge(request: MergeRequest):
    return sort_schema(merge_schemas(*request.schemas))


@router.post("/diff", response_model=Changelog)
def diff(request: DiffRequest):
    return compare_schemas(request.previous, request.current)


# ============================
# Diagrams
# ============================

@router.post("/format", response_model=FormatResponse)
def format_schema(request: FormatRequest, target: D2Target = Depends(get_target)):
    formatted = target.format_schema(sort_schema(request.document), _options(request))
    return FormatResponse(type=formatted.type, source=formatted.data.decode("utf-8"))


@router.post("/render")
def render_schema(request: FormatRequest, target: D2Target = Depends(get_target)):
    formatted = target.format_schema(sort_schema(request.document), _options(request))
    image = target.render_schema(formatted)
    return Response(content=image, media_type="image/svg+xml")


# ============================
# Changelog history
# ============================

@router.post("/changelog", response_model=ChangelogResponse)
def record_changelog(
    request: ChangelogRequest,
    store: MetadataStore = Depends(get_metadata_store),
):
    now = datetime.now(timezone.utc)
    previous = store.load()
    metadata = append_changelog(previous, sort_schema(request.document), now=now)
    store.save(metadata)

    known = len(previous.changelogs) if previous else 0
    if len(metadata.changelogs) > known:
        changelog = metadata.changelogs[-1]
    else:
        changelog = Changelog(date=now, changes=[])

    logger.info("changelog with %d change(s) recorded", len(changelog.changes))
    return ChangelogResponse(changelog=changelog, history_size=len(metadata.changelogs))


@router.get("/changelog", response_model=List[Changelog])
def list_changelogs(store: MetadataStore = Depends(get_metadata_store)):
    metadata = store.load()
    return metadata.changelogs if metadata else []
