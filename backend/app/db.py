from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from backend.app import settings


def _build_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # Source reads run on worker threads, each with its own session.
        connect_args["check_same_thread"] = False
    return create_engine(url, future=True, connect_args=connect_args)


DATABASE_URL = settings.database_url()
engine = _build_engine(DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


class Base(DeclarativeBase):
    pass
