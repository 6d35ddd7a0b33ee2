# eventlog/db/session.py
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from eventlog.core.config import settings
from eventlog.db.base_class import Base

logger = logging.getLogger(__name__)


class LogStore:
    """
    Owned connection handle for the event log database.

    Created once at service startup and disposed at shutdown. Each request
    or RPC call borrows a short-lived Session from it.
    """

    def __init__(self, database_url: Optional[str] = None, **engine_kwargs):
        self.database_url = database_url or settings.DATABASE_URL
        engine_kwargs.setdefault("pool_pre_ping", True)
        self.engine = create_engine(self.database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_tables(self) -> None:
        # Importing the models registers their tables on Base.metadata
        import eventlog.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Log store tables checked and created if necessary")

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def ping(self) -> None:
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Log store connections closed")
