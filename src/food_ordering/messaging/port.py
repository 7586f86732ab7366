"""Broker connection port (abstract interface).

Defines the topic-exchange contract the publisher and the reactor depend on.
This enables swapping between MemoryBroker (dev/test) and RedisStreamsBroker
(production) without changing the publisher, the reactor or any handler.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Delivery:
    """A message handed to a queue consumer, pending acknowledgement."""

    queue: str
    exchange: str
    routing_key: str
    payload: dict
    delivery_id: str
    headers: dict = field(default_factory=dict)


class BrokerConnection(ABC):
    """Abstract connection to a topic-routing message broker.

    Exchanges route by dotted routing key; queues receive every message whose
    key matches one of their binding patterns (``*`` one word, ``#`` zero or
    more words). Unreachable brokers surface as ``InfrastructureError``.
    """

    @abstractmethod
    def open(self) -> None:
        """Establish the connection. Idempotent."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the connection. Idempotent."""
        ...

    @property
    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def ping(self) -> bool:
        """Return True when the broker answers, never raising."""
        ...

    @abstractmethod
    def declare_exchange(self, name: str) -> None: ...

    @abstractmethod
    def bind_queue(self, queue: str, exchange: str, pattern: str) -> None:
        """Create ``queue`` if needed and route ``exchange`` messages matching ``pattern`` to it."""
        ...

    @abstractmethod
    def publish(self, exchange: str, routing_key: str, payload: dict, headers: dict | None = None) -> None: ...

    @abstractmethod
    def fetch(self, queue: str, timeout: float = 0.0) -> Delivery | None:
        """Return the next message on ``queue``, waiting up to ``timeout`` seconds."""
        ...

    @abstractmethod
    def ack(self, delivery: Delivery) -> None:
        """Acknowledge a fetched message so it is not redelivered."""
        ...
