# eventlog/workers/log_bridge_worker.py
"""
Kafka consumer that bridges the event_logs topic to the log-writer.

Delivery policy:
- At-least-once: the offset is committed only after LogEvent succeeds
- Retryable RPC failures (INTERNAL, UNAVAILABLE, DEADLINE_EXCEEDED) are
  redelivered by seeking back to the message, with linear backoff
- Poison messages (undecodable payloads, INVALID_ARGUMENT) and messages
  that exhaust MAX_DELIVERY_ATTEMPTS go to the dead-letter topic, then
  are committed
- Anything not committed when the process dies is redelivered on restart

Usage:
    python -m eventlog.workers.log_bridge_worker
"""

import json
import logging
import signal
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from kafka import KafkaConsumer, TopicPartition

from eventlog.core.config import settings
from eventlog.core.exceptions import DeadLetterError
from eventlog.core.kafka_producer import DeadLetterPublisher
from eventlog.rpc.client import LogServiceClient
from eventlog.rpc.status import RpcError, StatusCode
from eventlog.schemas.dead_letter import DeadLetterEnvelope

logger = logging.getLogger(__name__)

MessageKey = Tuple[str, int, int]


class DeliveryOutcome(str, Enum):
    ACKED = "acked"
    RETRY = "retry"
    DEAD_LETTERED = "dead_lettered"


def create_consumer() -> KafkaConsumer:
    """Consumer with manual commits: the committed offset is the acknowledgment."""
    return KafkaConsumer(
        settings.EVENT_LOG_TOPIC,
        bootstrap_servers=settings.kafka_servers,
        group_id=settings.KAFKA_CONSUMER_GROUP,
        enable_auto_commit=False,
        auto_offset_reset="earliest",
        consumer_timeout_ms=settings.KAFKA_CONSUMER_TIMEOUT_MS,
    )


def decode_message(raw: Optional[bytes]) -> Dict[str, Any]:
    """
    Decode a message body into the LogEvent request fields.

    Raises:
        RpcError: INVALID_ARGUMENT for bodies that are not a UTF-8 JSON object
    """
    if raw is None:
        raise RpcError(StatusCode.INVALID_ARGUMENT, "Empty message body")
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise RpcError(StatusCode.INVALID_ARGUMENT, f"Malformed message: {e}")
    if not isinstance(data, dict):
        raise RpcError(
            StatusCode.INVALID_ARGUMENT,
            f"Malformed message: expected a JSON object, got {type(data).__name__}",
        )
    return {
        "userId": data.get("userId"),
        "eventType": data.get("eventType"),
        "timestamp": data.get("timestamp"),
        "details": data.get("details"),
    }


class LogBridgeWorker:
    """
    Sequential consume -> LogEvent -> commit loop.

    The consumer, RPC client and dead-letter publisher are injected so the
    worker owns no global connection state.
    """

    def __init__(
        self,
        consumer: KafkaConsumer,
        rpc_client: LogServiceClient,
        dead_letter: DeadLetterPublisher,
        max_attempts: Optional[int] = None,
        retry_backoff_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.consumer = consumer
        self.rpc_client = rpc_client
        self.dead_letter = dead_letter
        self.max_attempts = max_attempts or settings.MAX_DELIVERY_ATTEMPTS
        self.retry_backoff_seconds = (
            retry_backoff_seconds
            if retry_backoff_seconds is not None
            else settings.RETRY_BACKOFF_SECONDS
        )
        self._sleep = sleep
        self._attempts: Dict[MessageKey, int] = {}
        self._stopping = False
        self._stats = {outcome.value: 0 for outcome in DeliveryOutcome}

    # ===========================================
    # Lifecycle
    # ===========================================

    def run(self) -> None:
        """
        Consume until stop() is called.

        The consumer iterator ends every KAFKA_CONSUMER_TIMEOUT_MS without
        traffic, which is when the stop flag is checked between messages.
        """
        logger.info(f"Consumer started for topic: {settings.EVENT_LOG_TOPIC}")
        try:
            while not self._stopping:
                for message in self.consumer:
                    self.process(message)
                    if self._stopping:
                        break
        finally:
            self.close()

    def stop(self, *_args) -> None:
        if not self._stopping:
            logger.info("Stop requested, finishing current message...")
        self._stopping = True

    def close(self) -> None:
        logger.info(f"Worker shutting down. Stats: {self.stats()}")
        self.consumer.close()
        self.rpc_client.close()
        self.dead_letter.close()

    def stats(self) -> Dict[str, int]:
        return dict(self._stats)

    # ===========================================
    # Message handling
    # ===========================================

    def process(self, message) -> DeliveryOutcome:
        """Handle one message and acknowledge or rewind the consumer accordingly."""
        outcome = self.handle_message(message)
        self._stats[outcome.value] += 1

        if outcome is DeliveryOutcome.RETRY:
            # Not acknowledged: rewind so the same message is delivered again
            self.consumer.seek(
                TopicPartition(message.topic, message.partition), message.offset
            )
        else:
            self.consumer.commit()
            logger.debug(
                f"Committed {message.topic}[{message.partition}]@{message.offset}"
            )
        return outcome

    def handle_message(self, message) -> DeliveryOutcome:
        """
        Decide the fate of one message. Never raises for RPC or payload errors.
        """
        key: MessageKey = (message.topic, message.partition, message.offset)
        attempt = self._attempts.get(key, 0) + 1
        self._attempts[key] = attempt

        try:
            payload = decode_message(message.value)
            ack = self.rpc_client.log_event(payload)
        except RpcError as e:
            return self._handle_failure(message, key, attempt, e)

        self._attempts.pop(key, None)
        logger.info(
            f"{ack.message}: {payload.get('eventType')} "
            f"from {message.topic}[{message.partition}]@{message.offset}"
        )
        return DeliveryOutcome.ACKED

    def _handle_failure(
        self, message, key: MessageKey, attempt: int, error: RpcError
    ) -> DeliveryOutcome:
        where = f"{message.topic}[{message.partition}]@{message.offset}"

        if error.retryable and attempt < self.max_attempts:
            logger.error(
                f"LogEvent error on {where} (attempt {attempt}/{self.max_attempts}): {error}"
            )
            self._sleep(self.retry_backoff_seconds * attempt)
            return DeliveryOutcome.RETRY

        if error.retryable:
            logger.error(f"Giving up on {where} after {attempt} attempts: {error}")
        else:
            logger.error(f"Rejecting poison message {where}: {error}")

        envelope = DeadLetterEnvelope(
            originalTopic=message.topic,
            partition=message.partition,
            offset=message.offset,
            payload=(message.value or b"").decode("utf-8", errors="replace"),
            errorCode=error.code.value,
            errorDetails=error.details,
            attempts=attempt,
        )
        try:
            self.dead_letter.publish(envelope)
        except DeadLetterError as e:
            # Keep the message rather than lose it
            logger.error(f"Could not dead-letter {where}, will redeliver: {e}")
            self._sleep(self.retry_backoff_seconds * attempt)
            return DeliveryOutcome.RETRY

        self._attempts.pop(key, None)
        return DeliveryOutcome.DEAD_LETTERED


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="[%(asctime)s] %(levelname)s [%(name)s] %(message)s",
    )
    logger.info("Event Log Bridge Worker Starting...")
    logger.info(f"Kafka Bootstrap Servers: {settings.KAFKA_BOOTSTRAP_SERVERS}")
    logger.info(f"Topic: {settings.EVENT_LOG_TOPIC} (group {settings.KAFKA_CONSUMER_GROUP})")
    logger.info(f"Dead-letter topic: {settings.EVENT_LOG_DLQ_TOPIC}")
    logger.info(f"Log-writer: {settings.LOG_SINK_URL}")

    worker = LogBridgeWorker(
        consumer=create_consumer(),
        rpc_client=LogServiceClient(),
        dead_letter=DeadLetterPublisher(),
    )
    signal.signal(signal.SIGTERM, worker.stop)
    signal.signal(signal.SIGINT, worker.stop)
    worker.run()


if __name__ == "__main__":
    main()
