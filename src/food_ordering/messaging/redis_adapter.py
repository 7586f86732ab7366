"""Redis Streams broker adapter (production).

Each exchange is a Redis stream and each queue a consumer group, so several
queues bound to one exchange each see every message and a message stays
pending in its group until it is acknowledged. Topic patterns are applied on
delivery: a message whose key matches none of the queue's bindings for that
stream is acknowledged and skipped.

After a restart the consumer first re-reads its own pending entries, so
messages fetched but never acknowledged before a crash are delivered again.
"""

import json
import socket
from uuid import uuid4

import redis
import structlog

from food_ordering.exceptions import InfrastructureError
from food_ordering.messaging.port import BrokerConnection, Delivery
from food_ordering.messaging.topics import topic_matches

logger = structlog.get_logger(__name__)

# Read the consumer's pending entries list before new messages
_PENDING = "0"
_NEW = ">"


class RedisStreamsBroker(BrokerConnection):
    """Topic exchanges over Redis Streams and consumer groups."""

    def __init__(
        self,
        url: str,
        consumer_name: str | None = None,
        stream_prefix: str = "",
        max_stream_length: int = 100_000,
    ) -> None:
        self.url = url
        self.consumer_name = consumer_name or f"{socket.gethostname()}-{uuid4().hex[:8]}"
        self.stream_prefix = stream_prefix
        self.max_stream_length = max_stream_length
        self._client: redis.Redis | None = None
        self._bindings: dict[str, list[tuple[str, str]]] = {}
        self._cursors: dict[tuple[str, str], str] = {}

    def stream_for(self, exchange: str) -> str:
        return f"{self.stream_prefix}{exchange}"

    # -------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------
    def open(self) -> None:
        if self._client is not None:
            return
        client = redis.Redis.from_url(self.url, decode_responses=True)
        try:
            client.ping()
        except redis.exceptions.RedisError as exc:
            client.close()
            raise InfrastructureError({"broker": [f"Cannot connect to Redis: {exc}"]}) from exc

        self._client = client
        # Resume every queue from its pending entries after reconnecting
        self._cursors = {key: _PENDING for key in self._cursors}
        logger.info("Connected to Redis broker", url=self.url, consumer=self.consumer_name)

    def close(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        try:
            client.close()
        except redis.exceptions.RedisError as exc:
            logger.warning("Error closing Redis connection", error=str(exc))

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(self._client.ping())
        except redis.exceptions.RedisError:
            return False

    # -------------------------------------------------------------------
    # Topology
    # -------------------------------------------------------------------
    def declare_exchange(self, name: str) -> None:
        # Streams are created by the first XADD or XGROUP CREATE
        self._require_client()

    def bind_queue(self, queue: str, exchange: str, pattern: str) -> None:
        client = self._require_client()
        stream = self.stream_for(exchange)
        try:
            client.xgroup_create(stream, queue, id="$", mkstream=True)
        except redis.exceptions.ResponseError as exc:
            if "BUSYGROUP" not in str(exc):
                raise InfrastructureError({"broker": [str(exc)]}) from exc
        except redis.exceptions.RedisError as exc:
            raise self._lost(exc) from exc

        bindings = self._bindings.setdefault(queue, [])
        if (exchange, pattern) not in bindings:
            bindings.append((exchange, pattern))
        self._cursors.setdefault((queue, stream), _PENDING)

    # -------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------
    def publish(self, exchange: str, routing_key: str, payload: dict, headers: dict | None = None) -> None:
        client = self._require_client()
        fields = {
            "routing_key": routing_key,
            "payload": json.dumps(payload, default=str),
            "headers": json.dumps(headers or {}, default=str),
        }
        try:
            client.xadd(self.stream_for(exchange), fields, maxlen=self.max_stream_length, approximate=True)
        except redis.exceptions.RedisError as exc:
            raise self._lost(exc) from exc

    def fetch(self, queue: str, timeout: float = 0.0) -> Delivery | None:
        client = self._require_client()
        exchanges = {self.stream_for(exchange): exchange for exchange, _ in self._bindings.get(queue, [])}
        if not exchanges:
            return None

        streams = {stream: self._cursors.get((queue, stream), _NEW) for stream in exchanges}
        reading_pending = any(cursor == _PENDING for cursor in streams.values())
        try:
            response = client.xreadgroup(
                groupname=queue,
                consumername=self.consumer_name,
                streams=streams,
                count=1,
                # Pending entries are returned immediately, never block on them
                block=None if reading_pending else max(int(timeout * 1000), 1),
            )
        except redis.exceptions.RedisError as exc:
            raise self._lost(exc) from exc

        delivered = {stream: entries for stream, entries in response or []}
        for stream in streams:
            if streams[stream] == _PENDING and not delivered.get(stream):
                self._cursors[(queue, stream)] = _NEW

        for stream, entries in delivered.items():
            for message_id, fields in entries:
                if fields is None:
                    # Entry trimmed from the stream while pending
                    client.xack(stream, queue, message_id)
                    continue
                delivery = self._to_delivery(queue, exchanges[stream], message_id, fields)
                if self._routes(queue, delivery):
                    return delivery
                client.xack(stream, queue, message_id)
        return None

    def ack(self, delivery: Delivery) -> None:
        client = self._require_client()
        try:
            client.xack(self.stream_for(delivery.exchange), delivery.queue, delivery.delivery_id)
        except redis.exceptions.RedisError as exc:
            raise self._lost(exc) from exc

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _routes(self, queue: str, delivery: Delivery) -> bool:
        return any(
            exchange == delivery.exchange and topic_matches(pattern, delivery.routing_key)
            for exchange, pattern in self._bindings.get(queue, [])
        )

    @staticmethod
    def _to_delivery(queue, exchange, message_id, fields) -> Delivery:
        try:
            payload = json.loads(fields.get("payload") or "{}")
        except json.JSONDecodeError:
            # Left for the reactor to dead-letter
            payload = {"_raw": fields.get("payload")}
        return Delivery(
            queue=queue,
            exchange=exchange,
            routing_key=fields.get("routing_key", ""),
            payload=payload,
            delivery_id=message_id,
            headers=json.loads(fields.get("headers") or "{}"),
        )

    def _require_client(self) -> redis.Redis:
        if self._client is None:
            raise InfrastructureError({"broker": ["Broker connection is not open"]})
        return self._client

    def _lost(self, exc: Exception) -> InfrastructureError:
        if isinstance(exc, redis.exceptions.ConnectionError | redis.exceptions.TimeoutError):
            logger.warning("Lost connection to Redis broker", error=str(exc))
            self.close()
        return InfrastructureError({"broker": [f"Redis error: {exc}"]})
