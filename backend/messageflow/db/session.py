from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from messageflow.config import MESSAGEFLOW_DATABASE_URL


def make_engine(url: str = MESSAGEFLOW_DATABASE_URL):
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # in-memory databases live and die with their single connection
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


engine = make_engine() if MESSAGEFLOW_DATABASE_URL else None
