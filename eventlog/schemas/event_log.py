#eventlog/schemas/event_log.py
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

# Conventional `details` keys per eventType. This is a soft contract for the
# reporting dashboard; the pipeline never rejects an event for breaking it.
PRODUCT_KEYS = ["productId", "productName"]

DETAIL_CONVENTIONS: Dict[str, List[str]] = {
    "login": ["username"],
    "signup": ["username"],
    "app_load": ["username"],
    "view_products_page": [],
    "view_cart_page": [],
    "view_wishlist_page": [],
    "add_to_cart": PRODUCT_KEYS,
    "add_to_wishlist": PRODUCT_KEYS,
    "move_from_cart_to_wishlist": PRODUCT_KEYS,
    "move_from_wishlist_to_cart": PRODUCT_KEYS,
    "remove_from_cart": ["productId"],
    "remove_from_wishlist": ["productId"],
    "update_cart_quantity": ["productId", "newQuantity"],
    "place_order": ["items", "totalPrice"],
}


def missing_detail_keys(event_type: str, details: Dict[str, Any]) -> List[str]:
    """Returns the conventional keys absent from `details` (empty for unknown types)."""
    expected = DETAIL_CONVENTIONS.get(event_type, [])
    return [key for key in expected if key not in details]


# --- Producer input ---


class EventLogCreate(BaseModel):
    """
    Body of POST /log.

    Required fields are declared optional so the endpoint can answer a
    missing field with its own 400 body instead of a schema error.
    """

    userId: Optional[str] = None
    eventType: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: Optional[datetime] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def blank_timestamp_is_missing(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def missing_fields(self) -> List[str]:
        missing = []
        for name in ("userId", "eventType"):
            value = getattr(self, name)
            if value is None or not value.strip():
                missing.append(name)
        if self.timestamp is None:
            missing.append("timestamp")
        return missing


# --- Queue wire format ---


class EventLogMessage(BaseModel):
    """One event as carried on the event_logs topic."""

    model_config = ConfigDict(frozen=True)

    userId: str
    eventType: str
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime

    @classmethod
    def from_create(cls, event_in: EventLogCreate) -> "EventLogMessage":
        return cls(
            userId=event_in.userId,
            eventType=event_in.eventType,
            details=event_in.details or {},
            timestamp=event_in.timestamp,
        )


# --- Log store read surface ---


class EventLogRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"), serialization_alias="_id")
    userId: str = Field(validation_alias=AliasChoices("userId", "user_id"))
    eventType: str = Field(validation_alias=AliasChoices("eventType", "event_type"))
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class MessageResponse(BaseModel):
    message: str
