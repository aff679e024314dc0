"""Lightweight event bus wrapper for producing progress facts to Kafka.

Uses `confluent_kafka.Producer` when `KAFKA_BOOTSTRAP` is configured;
otherwise events are only logged, so dev/test runs need no broker.
Downstream consumers (points and badges) subscribe to `PROGRESS_TOPIC`.
"""

from .config import get_settings
from typing import Any
import json, logging

log = logging.getLogger(__name__)


class EventBus:
    """Thin Kafka publisher; log-only when no bootstrap servers are configured."""

    def __init__(self) -> None:
        """Initialize the producer from settings."""
        s = get_settings()
        self.kafka_bootstrap = s.KAFKA_BOOTSTRAP
        self.progress_topic = s.PROGRESS_TOPIC
        self._producer = None
        if self.kafka_bootstrap:
            from confluent_kafka import Producer
            self._producer = Producer({'bootstrap.servers': self.kafka_bootstrap})

    def publish(self, topic: str, key: str, value: dict[str, Any]) -> None:
        """Publish a message to Kafka (when configured) and log it.

        Args:
            topic: Kafka topic name.
            key: Message key (used for partitioning).
            value: JSON-serializable payload dictionary.
        """
        payload = json.dumps(value, default=str).encode("utf-8")
        if self._producer:
            self._producer.produce(topic, key=key, value=payload)
            self._producer.flush()
        log.info(f"PUBLISH topic={topic} key={key} value={value}")

    def content_completed(self, user_id: str, content_id: str, source: str) -> None:
        """Announce that a learner newly completed a content item.

        Keyed by user so one learner's facts stay ordered on a partition.
        """
        self.publish(
            self.progress_topic,
            key=user_id,
            value={"event": "progress.completed", "user_id": user_id,
                   "content_id": content_id, "source": source},
        )


bus = EventBus()
