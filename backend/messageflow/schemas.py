from typing import List

from pydantic import BaseModel, ConfigDict, Field

from messageflow.ir.changelog import Changelog
from messageflow.ir.schema import Schema


class MergeRequest(BaseModel):
    schemas: List[Schema]


class DiffRequest(BaseModel):
    previous: Schema
    current: Schema


class FormatRequest(BaseModel):
    """One view of a schema; `mode` is one of the supported format modes."""

    model_config = ConfigDict(populate_by_name=True)

    document: Schema = Field(alias="schema")
    mode: str = "service_channels"
    service: str = ""
    channel: str = ""
    omit_payloads: bool = False


class FormatResponse(BaseModel):
    type: str
    source: str


class ChangelogRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document: Schema = Field(alias="schema")


class ChangelogResponse(BaseModel):
    changelog: Changelog
    history_size: int
