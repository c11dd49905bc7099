from messageflow.config import MESSAGEFLOW_DATABASE_URL
from messageflow.store.base import MetadataStore
from messageflow.store.json_store import JsonMetadataStore
from messageflow.store.sql_store import SqlMetadataStore


def get_store(output_dir: str, database_url: str = MESSAGEFLOW_DATABASE_URL) -> MetadataStore:
    if database_url:
        from messageflow.db.session import make_engine

        store = SqlMetadataStore(make_engine(database_url))
        store.create_tables()
        return store
    return JsonMetadataStore(output_dir)


__all__ = ["MetadataStore", "JsonMetadataStore", "SqlMetadataStore", "get_store"]
