from sqlalchemy import create_engine
import os

from models import Base


def get_engine(database_url: str):
    """Create SQLAlchemy engine for the provider settings store.

    SQLite file URLs get their parent directory created and
    check_same_thread disabled so FastAPI worker threads can share it.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
        db_path = database_url.split("///", 1)[-1]
        if db_path and db_path != ":memory:" and os.path.dirname(db_path):
            os.makedirs(os.path.dirname(db_path), exist_ok=True)

    return create_engine(
        database_url,
        connect_args=connect_args,
        pool_pre_ping=True,
    )


def init_database(engine):
    """Initialize all tables"""
    Base.metadata.create_all(engine)

