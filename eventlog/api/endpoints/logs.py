# eventlog/api/endpoints/logs.py
"""
Producer endpoint and log store read surface.

POST /log is fire-and-forget for the caller: it returns as soon as the
broker has accepted the event. Persistence happens later in the bridge
worker and the log-writer, and its outcome is invisible here.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from eventlog.api.deps import get_db
from eventlog.core.exceptions import MissingFieldsError
from eventlog.core.kafka_producer import EventLogPublisher, get_event_publisher
from eventlog.crud.crud_event_log import event_log
from eventlog.schemas.event_log import (
    EventLogCreate,
    EventLogMessage,
    EventLogRecord,
    MessageResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Event Logs"])


@router.post("/log", response_model=MessageResponse)
def create_event_log(
    event_in: EventLogCreate,
    publisher: EventLogPublisher = Depends(get_event_publisher),
):
    """
    Validate an event and enqueue it on the event_logs topic.

    A sync route: FastAPI runs it in the threadpool, so waiting for the
    broker ack never blocks other requests.
    """
    missing = event_in.missing_fields()
    if missing:
        raise MissingFieldsError(missing)

    message = EventLogMessage.from_create(event_in)
    publisher.publish_event(message)
    return MessageResponse(message="Event queued for logging")


@router.get("/logs", response_model=List[EventLogRecord])
def read_event_logs(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """Stored events, newest first."""
    logs = event_log.get_multi(db, skip=skip, limit=limit)
    return [EventLogRecord.model_validate(log) for log in logs]
