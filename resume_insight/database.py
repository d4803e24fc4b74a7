from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .models.item import items_table


def build_engine(database_url: str) -> Engine:
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        # In-memory databases must share a single connection across sessions
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_table(engine: Engine, table_name: str):
    """
    Create the single key-value table used by every store and return it.
    For production, manage the schema with Alembic migrations instead.
    """
    metadata = MetaData()
    table = items_table(metadata, table_name)
    metadata.create_all(bind=engine)
    return table
