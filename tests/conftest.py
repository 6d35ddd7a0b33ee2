# tests/conftest.py

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from eventlog.api.deps import get_db
from eventlog.core.exceptions import DeadLetterError
from eventlog.core.kafka_producer import get_event_publisher
from eventlog.db.session import LogStore
from eventlog.main import app as api_app
from eventlog.rpc.client import LogServiceClient
from eventlog.sink.main import app as sink_app

TOPIC = "event_logs"


# --- Kafka doubles ---


class FakeEventPublisher:
    """Records published events instead of talking to a broker."""

    def __init__(self):
        self.published = []
        self.error = None

    def publish_event(self, message):
        if self.error is not None:
            raise self.error
        self.published.append(message)

    def close(self):
        pass


class FakeDeadLetterPublisher:
    def __init__(self):
        self.envelopes = []
        self.fail = False
        self.closed = False

    def publish(self, envelope):
        if self.fail:
            raise DeadLetterError(topic="event_logs.dlq", reason="broker down")
        self.envelopes.append(envelope)

    def close(self):
        self.closed = True


class FakeKafkaConsumer:
    """
    Replays records in order and honours seek()/commit() the way
    KafkaConsumer does for a single-partition subscription.
    """

    def __init__(self, records, on_exhausted=None):
        self.records = list(records)
        self.on_exhausted = on_exhausted
        self._pos = 0
        self.commits = []
        self.seeks = []
        self.closed = False

    def __iter__(self):
        return self

    def __next__(self):
        if self._pos >= len(self.records):
            if self.on_exhausted is not None:
                self.on_exhausted()
            raise StopIteration
        record = self.records[self._pos]
        self._pos += 1
        return record

    def seek(self, partition, offset):
        self.seeks.append((partition.partition, offset))
        for i, record in enumerate(self.records):
            if record.partition == partition.partition and record.offset == offset:
                self._pos = i
                return
        raise AssertionError(f"seek to unknown offset {offset}")

    def commit(self):
        # Commits the position after the last delivered record
        self.commits.append(self.records[self._pos - 1].offset)

    def close(self):
        self.closed = True


def make_record(value, offset=0, partition=0, topic=TOPIC):
    """A stand-in for kafka.consumer.fetcher.ConsumerRecord."""
    if isinstance(value, str):
        value = value.encode("utf-8")
    return SimpleNamespace(
        topic=topic, partition=partition, offset=offset, key=None, value=value
    )


# --- Log store ---


@pytest.fixture(scope="function")
def log_store():
    """In-memory SQLite log store shared across threads of the TestClient."""
    store = LogStore(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    store.create_tables()
    yield store
    store.dispose()


@pytest.fixture(scope="function")
def db_session(log_store):
    with log_store.session() as db:
        yield db


# --- Producer API ---


@pytest.fixture(scope="function")
def event_publisher():
    return FakeEventPublisher()


@pytest.fixture(scope="function")
def api_client(event_publisher, log_store):
    """
    TestClient for the producer API with Kafka and the database replaced.
    """

    def override_get_db():
        with log_store.session() as db:
            yield db

    api_app.dependency_overrides[get_event_publisher] = lambda: event_publisher
    api_app.dependency_overrides[get_db] = override_get_db

    with TestClient(api_app) as client:
        yield client

    api_app.dependency_overrides.clear()


# --- Log-writer (sink) ---


@pytest.fixture(scope="function")
def sink_client(log_store):
    sink_app.state.log_store = log_store
    with TestClient(sink_app) as client:
        yield client
    sink_app.state.log_store = None


@pytest.fixture(scope="function")
def rpc_client(sink_client):
    """LogServiceClient wired straight into the in-process log-writer."""
    return LogServiceClient(base_url="http://testserver", timeout=5.0, api_key="", http_client=sink_client)


@pytest.fixture(scope="function")
def dead_letter():
    return FakeDeadLetterPublisher()
