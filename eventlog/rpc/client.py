# eventlog/rpc/client.py
"""
HTTP client for the log-writer's LogEvent procedure.

Used by the bridge worker. Every failure surfaces as an RpcError with a
StatusCode, so the caller can decide between retry and dead-letter without
inspecting transport exceptions.
"""

import logging
from typing import Any, Optional

import httpx

from eventlog.core.config import settings
from eventlog.rpc.status import RpcError, StatusCode
from eventlog.schemas.rpc import LogEventAck

logger = logging.getLogger(__name__)

LOG_EVENT_PATH = "/rpc/LogEvent"


class LogServiceClient:
    """
    Synchronous client for the log-writer service.

    The worker handles one message at a time, so a blocking client keeps
    the loop strictly sequential.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize client.

        Args:
            base_url: Log-writer base URL
            timeout: Per-call deadline in seconds
            api_key: Shared internal key sent as X-Internal-Api-Key
            http_client: Pre-built client (tests pass a TestClient here)
        """
        self.base_url = base_url or settings.LOG_SINK_URL
        self.timeout = timeout if timeout is not None else settings.LOG_SINK_TIMEOUT_SECONDS
        self.api_key = api_key if api_key is not None else settings.INTERNAL_API_KEY
        self._client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Content-Type": "application/json",
                    "X-Service-Name": "event-log-worker",
                },
            )
            self._owns_client = True
        return self._client

    def log_event(self, payload: dict[str, Any]) -> LogEventAck:
        """
        Call LogEvent with the decoded message fields.

        The payload is forwarded as-is; the log-writer is the authoritative
        validator.

        Raises:
            RpcError: on any non-OK outcome, including timeouts
        """
        client = self._get_client()
        headers = {}
        if self.api_key:
            headers["X-Internal-Api-Key"] = self.api_key

        try:
            response = client.post(
                LOG_EVENT_PATH, json=payload, headers=headers, timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise RpcError(StatusCode.DEADLINE_EXCEEDED, f"LogEvent timed out: {e}")
        except httpx.TransportError as e:
            raise RpcError(StatusCode.UNAVAILABLE, f"Log-writer unreachable: {e}")
        except httpx.HTTPError as e:
            raise RpcError(StatusCode.INTERNAL, f"LogEvent failed: {e}")

        if not response.is_success:
            raise self._error_from_response(response)

        try:
            # ValidationError and JSONDecodeError are both ValueErrors
            return LogEventAck.model_validate(response.json())
        except ValueError as e:
            raise RpcError(
                StatusCode.INTERNAL,
                f"Unreadable LogEvent response: {e}",
                http_status=response.status_code,
            )

    @staticmethod
    def _error_from_response(response: httpx.Response) -> RpcError:
        code = StatusCode.from_http_status(response.status_code)
        details = response.text or response.reason_phrase
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and "code" in body:
            try:
                code = StatusCode(body["code"])
            except ValueError:
                logger.warning(f"Unknown status code from log-writer: {body['code']}")
            details = str(body.get("details", details))

        return RpcError(code, details, http_status=response.status_code)

    def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None and self._owns_client and not self._client.is_closed:
            self._client.close()
        self._client = None
