from sqlalchemy import Column, DateTime, Integer, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class SchemaSnapshot(Base):
    __tablename__ = "schema_snapshots"

    id = Column(Integer, primary_key=True)
    document = Column(Text, nullable=False)  # Schema JSON
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ChangelogRecord(Base):
    __tablename__ = "changelogs"

    id = Column(Integer, primary_key=True)
    date = Column(DateTime(timezone=True), nullable=False)
    document = Column(Text, nullable=False)  # Changelog JSON
