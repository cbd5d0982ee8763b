"""
Database session management
"""
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from workhub.core.config import settings
from workhub.db.base import Base
import workhub.models  # noqa: F401  (registers tables on Base.metadata)


def engine_options(url: str, pool_timeout: int, lock_timeout: int) -> Dict[str, Any]:
    """
    create_engine keyword arguments that bound how long a transaction waits.

    SQLite gets a busy timeout on locked files; server databases get a pool
    checkout timeout and a per-statement timeout.
    """
    options: Dict[str, Any] = {"pool_pre_ping": True, "echo": False}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False, "timeout": lock_timeout}
    else:
        options["pool_timeout"] = pool_timeout
        if url.startswith("postgresql"):
            options["connect_args"] = {"options": f"-c statement_timeout={lock_timeout * 1000}"}
    return options


engine = create_engine(
    settings.DATABASE_URL,
    **engine_options(
        settings.DATABASE_URL,
        settings.DB_POOL_TIMEOUT_SECONDS,
        settings.DB_LOCK_TIMEOUT_SECONDS,
    ),
)

# Create all tables automatically on startup for SQLite
if "sqlite" in settings.DATABASE_URL:
    Base.metadata.create_all(bind=engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
