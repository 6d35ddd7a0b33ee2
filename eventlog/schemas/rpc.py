#eventlog/schemas/rpc.py
import json
from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator


class LogEventRequest(BaseModel):
    """Request of the LogEvent remote procedure."""

    userId: str = Field(min_length=1)
    eventType: str = Field(min_length=1)
    timestamp: datetime
    details: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("userId", "eventType")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("details", mode="before")
    @classmethod
    def decode_details(cls, v: Any) -> Any:
        # Older producers sent details as a JSON-encoded string
        if v is None:
            return {}
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except json.JSONDecodeError:
                raise ValueError("Invalid JSON in details field")
            if not isinstance(v, dict):
                raise ValueError("Invalid JSON in details field")
        return v


class LogEventAck(BaseModel):
    message: str


class RpcErrorBody(BaseModel):
    code: str
    details: str
