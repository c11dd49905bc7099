import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from messageflow.db.models import Base, ChangelogRecord, SchemaSnapshot
from messageflow.ir.changelog import Changelog, Metadata
from messageflow.ir.errors import MetadataError
from messageflow.ir.schema import Schema
from messageflow.store.base import MetadataStore

logger = logging.getLogger(__name__)


class SqlMetadataStore(MetadataStore):
    """
    Snapshots are stored one row per save; the latest wins on load.
    Changelogs are append-only: saving inserts only the entries beyond
    those already stored.
    """

    def __init__(self, engine):
        self.engine = engine

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def load(self) -> Optional[Metadata]:
        try:
            with Session(self.engine) as session:
                snapshot = session.scalars(
                    select(SchemaSnapshot).order_by(SchemaSnapshot.id.desc()).limit(1)
                ).first()
                records = session.scalars(
                    select(ChangelogRecord).order_by(ChangelogRecord.id)
                ).all()

                if snapshot is None and not records:
                    return None

                return Metadata(
                    snapshot=Schema.model_validate_json(snapshot.document) if snapshot else Schema(),
                    changelogs=[Changelog.model_validate_json(r.document) for r in records],
                )
        except (SQLAlchemyError, ValueError) as e:
            raise MetadataError(f"failed to load metadata: {e}") from e

    def save(self, metadata: Metadata) -> None:
        try:
            with Session(self.engine) as session:
                stored = session.scalar(select(func.count()).select_from(ChangelogRecord)) or 0

                for changelog in metadata.changelogs[stored:]:
                    session.add(
                        ChangelogRecord(date=changelog.date, document=changelog.model_dump_json())
                    )

                session.add(SchemaSnapshot(document=metadata.snapshot.model_dump_json()))
                session.commit()
        except SQLAlchemyError as e:
            raise MetadataError(f"failed to save metadata: {e}") from e

        logger.info(
            "saved snapshot and %d new changelog(s)",
            max(len(metadata.changelogs) - stored, 0),
        )
