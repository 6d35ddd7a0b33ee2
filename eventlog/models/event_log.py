# eventlog/models/event_log.py
import uuid
from sqlalchemy import Column, String, DateTime, JSON, Index, func
from eventlog.db.base_class import Base


class EventLog(Base):
    __tablename__ = "event_logs"

    id = Column(String, primary_key=True, default=lambda: f"log_{uuid.uuid4().hex[:12]}")
    user_id = Column(String, nullable=False, index=True)  # No FK - users live in the storefront database
    event_type = Column(String(100), nullable=False, index=True)
    details = Column(JSON, nullable=False, default=dict)

    # When the event happened (caller's clock) vs. when it was persisted
    timestamp = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (Index("ix_event_logs_timestamp_desc", timestamp.desc()),)
