from sqlalchemy.orm import Session
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from typing import List
import logging

from eventlog.core.exceptions import LogStoreError
from eventlog.models.event_log import EventLog
from eventlog.schemas.rpc import LogEventRequest

logger = logging.getLogger(__name__)


class CRUDEventLog:
    """Append-only access to the event_logs table. No update or delete."""

    def __init__(self):
        self.model = EventLog

    def create(self, db: Session, *, obj_in: LogEventRequest) -> EventLog:
        """
        Insert one event record.

        Duplicates are stored as distinct rows: redelivered events are
        expected and never deduplicated here.
        """
        log = self.model(
            user_id=obj_in.userId,
            event_type=obj_in.eventType,
            details=obj_in.details,
            timestamp=obj_in.timestamp,
        )
        try:
            db.add(log)
            db.commit()
            db.refresh(log)
        except OperationalError as e:
            db.rollback()
            raise LogStoreError(f"Log store unavailable: {e.orig or e}", unavailable=True)
        except SQLAlchemyError as e:
            db.rollback()
            raise LogStoreError(f"Failed to save log: {e}")
        return log

    def get_multi(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[EventLog]:
        """Records ordered by event time, newest first."""
        try:
            return (
                db.query(self.model)
                .order_by(self.model.timestamp.desc(), self.model.created_at.desc())
                .offset(skip)
                .limit(limit)
                .all()
            )
        except OperationalError as e:
            raise LogStoreError(f"Log store unavailable: {e.orig or e}", unavailable=True)


event_log = CRUDEventLog()
