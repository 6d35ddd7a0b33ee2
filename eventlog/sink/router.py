# eventlog/sink/router.py
"""
The LogEvent remote procedure.

The log-writer is reachable independently of the producer API, so it
re-validates every request and is the authoritative gate for what reaches
the log store.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from eventlog.api.deps import get_db, get_internal_api_key
from eventlog.crud.crud_event_log import event_log
from eventlog.schemas.event_log import missing_detail_keys
from eventlog.schemas.rpc import LogEventAck, LogEventRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/rpc", tags=["RPC"])


@router.post("/LogEvent", response_model=LogEventAck)
def log_event(
    request_in: LogEventRequest,
    db: Session = Depends(get_db),
    api_key: str = Depends(get_internal_api_key),
):
    """
    Persist one event record.

    Failures are raised as LogStoreError and rendered as UNAVAILABLE or
    INTERNAL by the service's exception handlers.
    """
    logger.info(f"Received log data: {request_in.eventType} (user {request_in.userId})")

    unconventional = missing_detail_keys(request_in.eventType, request_in.details)
    if unconventional:
        logger.debug(
            f"{request_in.eventType} event without conventional details keys: {unconventional}"
        )

    log = event_log.create(db, obj_in=request_in)
    logger.info(f"Log saved: {log.id}")
    return LogEventAck(message="Log saved")
