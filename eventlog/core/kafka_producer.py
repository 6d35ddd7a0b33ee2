# eventlog/core/kafka_producer.py
"""
Kafka publishers for the event log pipeline.

- EventLogPublisher: used by POST /log to enqueue events on the event_logs topic
- DeadLetterPublisher: used by the bridge worker to divert poison messages

Both are explicit handles: built at process startup, closed at shutdown.
The underlying KafkaProducer is created lazily so a service can start while
the broker is still coming up.
"""

import json
import logging
import threading
from typing import Any, Optional

from fastapi import Request
from kafka import KafkaProducer
from kafka.errors import KafkaError

from eventlog.core.config import settings
from eventlog.core.exceptions import DeadLetterError, QueuePublishError
from eventlog.schemas.dead_letter import DeadLetterEnvelope
from eventlog.schemas.event_log import EventLogMessage

logger = logging.getLogger(__name__)


class KafkaJsonPublisher:
    """Publishes JSON values and waits for the broker to accept each write."""

    def __init__(
        self,
        bootstrap_servers: Optional[list[str]] = None,
        send_timeout: Optional[float] = None,
    ):
        self.bootstrap_servers = bootstrap_servers or settings.kafka_servers
        self.send_timeout = (
            send_timeout
            if send_timeout is not None
            else settings.KAFKA_PUBLISH_TIMEOUT_SECONDS
        )
        self._producer: Optional[KafkaProducer] = None
        self._producer_lock = threading.Lock()

    def _get_producer(self) -> KafkaProducer:
        """Get or create Kafka producer with lazy initialization."""
        if self._producer is None:
            # Sync routes share this publisher across threadpool workers
            with self._producer_lock:
                if self._producer is None:
                    self._producer = KafkaProducer(
                        bootstrap_servers=self.bootstrap_servers,
                        value_serializer=lambda v: json.dumps(v, default=str).encode("utf-8"),
                        key_serializer=lambda k: k.encode("utf-8") if k else None,
                        acks="all",  # Wait for all replicas
                        retries=3,
                        retry_backoff_ms=100,
                        request_timeout_ms=int(self.send_timeout * 1000),
                        # send() blocks on metadata and buffer space before the future exists
                        max_block_ms=int(self.send_timeout * 1000),
                    )
                    logger.info(f"Kafka producer connected to {self.bootstrap_servers}")
        return self._producer

    def _send(self, topic: str, value: dict[str, Any], key: Optional[str] = None) -> None:
        """
        Send one value and block until the broker acknowledges it.

        Raises:
            QueuePublishError: broker unreachable, send rejected or timed out
        """
        try:
            producer = self._get_producer()
            future = producer.send(topic, value=value, key=key)
            metadata = future.get(timeout=self.send_timeout)
        except KafkaError as e:
            logger.error(f"Failed to publish to {topic}: {e}")
            raise QueuePublishError(topic=topic, reason=str(e)) from e

        logger.debug(
            f"Published to {topic}",
            extra={"topic": topic, "partition": metadata.partition, "offset": metadata.offset},
        )

    def close(self) -> None:
        """Flush and close Kafka producer."""
        if self._producer is not None:
            try:
                self._producer.flush(timeout=self.send_timeout)
            except KafkaError as e:
                logger.warning(f"Kafka flush failed on close: {e}")
            self._producer.close()
            self._producer = None
            logger.info("Kafka producer closed")


class EventLogPublisher(KafkaJsonPublisher):
    """Enqueues behavioral events for the log-writer."""

    def __init__(self, topic: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.topic = topic or settings.EVENT_LOG_TOPIC

    def publish_event(self, message: EventLogMessage) -> None:
        """Keyed by userId so one user's events share a partition."""
        self._send(self.topic, message.model_dump(mode="json"), key=message.userId)
        logger.info(
            f"Event queued for logging: {message.eventType} (user {message.userId})"
        )


class DeadLetterPublisher(KafkaJsonPublisher):
    """Diverts messages the worker will never be able to persist."""

    def __init__(self, topic: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.topic = topic or settings.EVENT_LOG_DLQ_TOPIC

    def publish(self, envelope: DeadLetterEnvelope) -> None:
        try:
            self._send(
                self.topic,
                envelope.model_dump(mode="json"),
                key=f"{envelope.originalTopic}:{envelope.partition}:{envelope.offset}",
            )
        except QueuePublishError as e:
            raise DeadLetterError(topic=self.topic, reason=e.reason) from e
        logger.warning(
            f"Dead-lettered {envelope.originalTopic}[{envelope.partition}]@{envelope.offset} "
            f"after {envelope.attempts} attempt(s): {envelope.errorCode}"
        )


def get_event_publisher(request: Request) -> EventLogPublisher:
    """
    FastAPI dependency returning the publisher created in the app lifespan.
    """
    return request.app.state.event_publisher
