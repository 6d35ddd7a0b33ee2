#eventlog/schemas/dead_letter.py
from datetime import datetime, timezone
from pydantic import BaseModel, Field


class DeadLetterEnvelope(BaseModel):
    """A message diverted to the dead-letter topic, with why and where it came from."""

    originalTopic: str
    partition: int
    offset: int
    payload: str  # Raw message body, undecodable bytes replaced
    errorCode: str
    errorDetails: str
    attempts: int
    deadLetteredAt: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
