import json
import logging
from typing import Any

import redis
from redis.exceptions import ConnectionError

from ridecore.metrics import event_publish_failures
from ridecore.settings import RedisSettings

from .channels import topic_kind

logger = logging.getLogger(__name__)


class RedisEventSink:
    """Publishes trip and driver events to Redis pub/sub channels.

    Topics map one-to-one onto channel names. Connection failures are logged
    and counted, never raised: live updates are best-effort.
    """

    def __init__(self, settings: RedisSettings, client: redis.Redis | None = None):
        self._client = client or redis.Redis(
            host=settings.host,
            port=settings.port,
            db=settings.db,
            password=settings.password or None,
            decode_responses=True,
        )

    def publish(self, topic: str, payload: dict[str, Any]) -> None:
        try:
            self._client.publish(topic, json.dumps(payload, default=str))
        except ConnectionError as e:
            event_publish_failures.labels(topic_kind=topic_kind(topic)).inc()
            logger.error(f"Failed to publish to channel {topic}: {e}")

    def close(self) -> None:
        self._client.close()
