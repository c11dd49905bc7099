from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from .schema import Schema


class ChangeType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class Change(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ChangeType
    category: str  # service | channel | message
    name: str
    details: str = ""
    diff: str = ""
    timestamp: datetime

    @model_serializer(mode="wrap")
    def _omit_empty_text(self, handler):
        data = handler(self)
        for key in ("details", "diff"):
            if not getattr(self, key):
                data.pop(key, None)
        return data


class Changelog(BaseModel):
    """One batch of changes detected by a single comparison run."""

    model_config = ConfigDict(frozen=True)

    date: datetime
    changes: List[Change] = Field(default_factory=list)


class Metadata(BaseModel):
    """Persisted state: latest schema snapshot plus the full changelog history."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # persisted under "schema"; dump with by_alias=True
    snapshot: Schema = Field(default_factory=Schema, alias="schema")
    changelogs: List[Changelog] = Field(default_factory=list)
