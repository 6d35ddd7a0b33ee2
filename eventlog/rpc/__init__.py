# eventlog/rpc/__init__.py
"""
LogEvent remote procedure: status codes and the worker-side client.
"""

from eventlog.rpc.status import RpcError, StatusCode
from eventlog.rpc.client import LogServiceClient

__all__ = [
    "RpcError",
    "StatusCode",
    "LogServiceClient",
]
