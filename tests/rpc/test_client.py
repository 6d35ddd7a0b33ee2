import httpx
import pytest

from eventlog.rpc.client import LOG_EVENT_PATH, LogServiceClient
from eventlog.rpc.status import RpcError, StatusCode

PAYLOAD = {
    "userId": "u1",
    "eventType": "login",
    "timestamp": "2024-01-01T00:00:00Z",
    "details": {},
}


def make_client(handler, api_key="") -> LogServiceClient:
    http_client = httpx.Client(
        transport=httpx.MockTransport(handler), base_url="http://log-writer"
    )
    return LogServiceClient(
        base_url="http://log-writer", timeout=1.0, api_key=api_key, http_client=http_client
    )


def test_log_event_success():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = request.read()
        return httpx.Response(200, json={"message": "Log saved"})

    ack = make_client(handler).log_event(PAYLOAD)

    assert ack.message == "Log saved"
    assert seen["path"] == LOG_EVENT_PATH
    assert b'"eventType":"login"' in seen["body"].replace(b" ", b"")


def test_sends_internal_api_key():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["X-Internal-Api-Key"] == "s3cret"
        return httpx.Response(200, json={"message": "Log saved"})

    make_client(handler, api_key="s3cret").log_event(PAYLOAD)


def test_structured_invalid_argument():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={"code": "INVALID_ARGUMENT", "details": "details: Invalid JSON in details field"},
        )

    with pytest.raises(RpcError) as exc_info:
        make_client(handler).log_event(PAYLOAD)

    assert exc_info.value.code is StatusCode.INVALID_ARGUMENT
    assert exc_info.value.retryable is False
    assert "Invalid JSON" in exc_info.value.details


def test_unstructured_error_mapped_from_http_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="upstream connect error")

    with pytest.raises(RpcError) as exc_info:
        make_client(handler).log_event(PAYLOAD)

    assert exc_info.value.code is StatusCode.UNAVAILABLE
    assert exc_info.value.retryable is True
    assert exc_info.value.http_status == 503


def test_timeout_is_deadline_exceeded():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(RpcError) as exc_info:
        make_client(handler).log_event(PAYLOAD)

    assert exc_info.value.code is StatusCode.DEADLINE_EXCEEDED
    assert exc_info.value.retryable is True


def test_connection_refused_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RpcError) as exc_info:
        make_client(handler).log_event(PAYLOAD)

    assert exc_info.value.code is StatusCode.UNAVAILABLE


def test_close_leaves_injected_client_open():
    http_client = httpx.Client(
        transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"message": "ok"}))
    )
    client = LogServiceClient(base_url="http://log-writer", http_client=http_client)

    client.close()

    assert http_client.is_closed is False


@pytest.mark.parametrize(
    "http_status, code",
    [
        (200, StatusCode.OK),
        (400, StatusCode.INVALID_ARGUMENT),
        (422, StatusCode.INVALID_ARGUMENT),
        (401, StatusCode.UNAUTHENTICATED),
        (404, StatusCode.UNIMPLEMENTED),
        (500, StatusCode.INTERNAL),
        (503, StatusCode.UNAVAILABLE),
        (504, StatusCode.DEADLINE_EXCEEDED),
    ],
)
def test_status_code_from_http_status(http_status, code):
    assert StatusCode.from_http_status(http_status) is code


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>ok</html>"),
        httpx.Response(200, json={"status": "saved"}),
        httpx.Response(200, json=["Log saved"]),
    ],
)
def test_unreadable_success_body_is_internal(response):
    with pytest.raises(RpcError) as exc_info:
        make_client(lambda request: response).log_event(PAYLOAD)

    assert exc_info.value.code is StatusCode.INTERNAL
    assert exc_info.value.retryable is True


def test_decoding_error_is_internal():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.DecodingError("bad gzip stream", request=request)

    with pytest.raises(RpcError) as exc_info:
        make_client(handler).log_event(PAYLOAD)

    assert exc_info.value.code is StatusCode.INTERNAL
