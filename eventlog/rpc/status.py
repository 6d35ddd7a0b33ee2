# eventlog/rpc/status.py
"""
Status codes for the LogEvent RPC.

Names follow the gRPC canonical codes. Each code carries the HTTP status
used on the wire and whether the worker should retry it.
"""

from enum import Enum
from typing import Optional


class StatusCode(str, Enum):
    OK = "OK"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    UNIMPLEMENTED = "UNIMPLEMENTED"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    UNAVAILABLE = "UNAVAILABLE"
    INTERNAL = "INTERNAL"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE

    @classmethod
    def from_http_status(cls, status_code: int) -> "StatusCode":
        if 200 <= status_code < 300:
            return cls.OK
        if status_code in (400, 422):
            return cls.INVALID_ARGUMENT
        if status_code in (401, 403):
            return cls.UNAUTHENTICATED
        if status_code in (404, 405):
            return cls.UNIMPLEMENTED
        if status_code == 504:
            return cls.DEADLINE_EXCEEDED
        if status_code in (502, 503):
            return cls.UNAVAILABLE
        return cls.INTERNAL


_HTTP_STATUS = {
    StatusCode.OK: 200,
    StatusCode.INVALID_ARGUMENT: 400,
    StatusCode.UNAUTHENTICATED: 401,
    StatusCode.UNIMPLEMENTED: 404,
    StatusCode.DEADLINE_EXCEEDED: 504,
    StatusCode.UNAVAILABLE: 503,
    StatusCode.INTERNAL: 500,
}

_RETRYABLE = frozenset(
    {StatusCode.DEADLINE_EXCEEDED, StatusCode.UNAVAILABLE, StatusCode.INTERNAL}
)


class RpcError(Exception):
    """A failed LogEvent call."""

    def __init__(self, code: StatusCode, details: str, http_status: Optional[int] = None):
        self.code = code
        self.details = details
        self.http_status = http_status if http_status is not None else code.http_status
        super().__init__(f"{code.value}: {details}")

    @property
    def retryable(self) -> bool:
        return self.code.retryable
