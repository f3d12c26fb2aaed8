"""Database engine and per-request sessions"""

from typing import Any, Dict, Iterator
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from deckfix_billing.config import settings


def build_engine(database_url: str) -> Engine:
    """Pooled engine for Postgres; SQLite (local runs, tests) gets a thread-shareable connection"""
    options: Dict[str, Any] = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        # Recycle hourly so idle pooled connections are not dropped by the server
        options.update(pool_size=10, max_overflow=10, pool_recycle=3600)
    return create_engine(database_url, **options)


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
