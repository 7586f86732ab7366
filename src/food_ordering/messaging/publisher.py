"""Outbound event publisher.

Publishing is fire-and-forget for callers: the local write has already
committed when an event is published, so a broker failure is logged and
reported through the return value but never raised.

Provides get_publisher() / set_publisher() to swap implementations:
- EventPublisher, installed by the messaging runtime at process startup
- DisconnectedPublisher, the default, which logs and drops events
"""

from datetime import UTC, datetime
from uuid import uuid4

import structlog

from food_ordering.exceptions import InfrastructureError
from food_ordering.messaging.port import BrokerConnection

logger = structlog.get_logger(__name__)

SOURCE = "order-service"


class EventPublisher:
    """Publishes flat event payloads onto the order exchange."""

    def __init__(self, connection: BrokerConnection, exchange: str, supervisor=None) -> None:
        self.connection = connection
        self.exchange = exchange
        self.supervisor = supervisor

    def publish(self, routing_key: str, payload: dict) -> bool:
        headers = {
            "message_id": uuid4().hex,
            "source": SOURCE,
            "published_at": datetime.now(UTC).isoformat(),
        }

        if self.supervisor is not None and not self.supervisor.ensure_open():
            logger.error("Event dropped, broker unavailable", routing_key=routing_key, exchange=self.exchange)
            return False

        try:
            self.connection.publish(self.exchange, routing_key, payload, headers=headers)
        except InfrastructureError as exc:
            if self.supervisor is not None:
                self.supervisor.mark_lost(exc)
            logger.error("Failed to publish event", routing_key=routing_key, exchange=self.exchange, error=exc.message)
            return False

        logger.debug("Published event", routing_key=routing_key, exchange=self.exchange)
        return True


class DisconnectedPublisher:
    """Stand-in used until a broker-backed publisher is installed."""

    def publish(self, routing_key: str, payload: dict) -> bool:  # noqa: ARG002
        logger.warning("Event publisher not configured, event dropped", routing_key=routing_key)
        return False


_current_publisher = None


def get_publisher():
    """Return the active publisher. Defaults to DisconnectedPublisher."""
    global _current_publisher
    if _current_publisher is None:
        _current_publisher = DisconnectedPublisher()
    return _current_publisher


def set_publisher(publisher) -> None:
    global _current_publisher
    _current_publisher = publisher


def reset_publisher() -> None:
    global _current_publisher
    _current_publisher = None
