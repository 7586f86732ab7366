"""In-process topic broker for development and testing.

Routes published messages to bound queues the way a topic exchange does and
keeps a log of everything published so tests can assert on it. It can be
switched offline at runtime to exercise reconnect and failure paths.
"""

import threading
from collections import deque
from itertools import count

from food_ordering.exceptions import InfrastructureError
from food_ordering.messaging.port import BrokerConnection, Delivery
from food_ordering.messaging.topics import topic_matches


class MemoryBroker(BrokerConnection):
    """Configurable in-memory broker."""

    def __init__(self) -> None:
        self.available: bool = True
        self.published: list[dict] = []
        self.open_attempts: int = 0
        self._open = False
        self._exchanges: set[str] = set()
        self._bindings: dict[str, list[tuple[str, str]]] = {}
        self._queues: dict[str, deque] = {}
        self._unacked: dict[str, Delivery] = {}
        self._ids = count(1)
        self._ready = threading.Condition()

    def configure(self, available: bool) -> None:
        """Take the broker offline or bring it back.

        Going offline drops the current connection, as a broker restart would.
        """
        self.available = available
        if not available:
            self._open = False

    # -------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------
    def open(self) -> None:
        self.open_attempts += 1
        if not self.available:
            raise InfrastructureError({"broker": ["Broker is unreachable"]})
        self._open = True

    def close(self) -> None:
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def ping(self) -> bool:
        return self._open and self.available

    # -------------------------------------------------------------------
    # Topology
    # -------------------------------------------------------------------
    def declare_exchange(self, name: str) -> None:
        self._ensure_open()
        self._exchanges.add(name)

    def bind_queue(self, queue: str, exchange: str, pattern: str) -> None:
        self._ensure_open()
        self._exchanges.add(exchange)
        self._queues.setdefault(queue, deque())
        bindings = self._bindings.setdefault(queue, [])
        if (exchange, pattern) not in bindings:
            bindings.append((exchange, pattern))

    # -------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------
    def publish(self, exchange: str, routing_key: str, payload: dict, headers: dict | None = None) -> None:
        self._ensure_open()
        self.published.append(
            {"exchange": exchange, "routing_key": routing_key, "payload": payload, "headers": dict(headers or {})}
        )

        with self._ready:
            for queue, bindings in self._bindings.items():
                if any(ex == exchange and topic_matches(pattern, routing_key) for ex, pattern in bindings):
                    self._queues[queue].append(
                        Delivery(
                            queue=queue,
                            exchange=exchange,
                            routing_key=routing_key,
                            payload=payload,
                            delivery_id=str(next(self._ids)),
                            headers=dict(headers or {}),
                        )
                    )
            self._ready.notify_all()

    def fetch(self, queue: str, timeout: float = 0.0) -> Delivery | None:
        self._ensure_open()
        with self._ready:
            pending = self._queues.setdefault(queue, deque())
            if not pending and timeout > 0:
                self._ready.wait_for(lambda: bool(pending) or not self._open, timeout=timeout)
            if not pending or not self._open:
                return None
            delivery = pending.popleft()
            self._unacked[delivery.delivery_id] = delivery
            return delivery

    def ack(self, delivery: Delivery) -> None:
        self._ensure_open()
        self._unacked.pop(delivery.delivery_id, None)

    # -------------------------------------------------------------------
    # Inspection helpers for tests
    # -------------------------------------------------------------------
    def published_to(self, exchange: str, routing_key: str | None = None) -> list[dict]:
        return [
            message
            for message in self.published
            if message["exchange"] == exchange and (routing_key is None or message["routing_key"] == routing_key)
        ]

    def pending(self, queue: str) -> int:
        return len(self._queues.get(queue, ()))

    @property
    def unacked(self) -> list[Delivery]:
        return list(self._unacked.values())

    def _ensure_open(self) -> None:
        if not self._open:
            raise InfrastructureError({"broker": ["Broker connection is not open"]})
