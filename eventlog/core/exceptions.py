# eventlog/core/exceptions.py
"""
Exception hierarchy for the event log pipeline.
All exceptions inherit from EventLogServiceError for consistent handling.
"""

from typing import Optional


class EventLogServiceError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "EVENT_LOG_ERROR",
        details: Optional[dict] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# ===========================================
# Validation Exceptions
# ===========================================


class MissingFieldsError(EventLogServiceError):
    """One or more required event fields are absent or empty."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            message="Missing required fields",
            error_code="MISSING_FIELDS",
            details={"missing": missing},
        )


# ===========================================
# Queue Exceptions
# ===========================================


class QueuePublishError(EventLogServiceError):
    """The event could not be handed to the broker."""

    def __init__(self, topic: str, reason: str):
        self.topic = topic
        self.reason = reason
        super().__init__(
            message=f"Failed to publish to {topic}: {reason}",
            error_code="QUEUE_PUBLISH_FAILED",
            details={"topic": topic},
        )


class DeadLetterError(QueuePublishError):
    """A poison message could not be routed to the dead-letter topic."""

    def __init__(self, topic: str, reason: str):
        super().__init__(topic=topic, reason=reason)
        self.error_code = "DEAD_LETTER_FAILED"


# ===========================================
# Storage Exceptions
# ===========================================


class LogStoreError(EventLogServiceError):
    """The log store rejected or failed a write."""

    def __init__(self, message: str, unavailable: bool = False):
        self.unavailable = unavailable
        super().__init__(
            message=message,
            error_code="LOG_STORE_ERROR",
            details={"unavailable": unavailable},
        )
