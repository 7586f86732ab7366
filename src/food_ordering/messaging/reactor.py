"""Event reactor — applies other services' facts to carts and orders.

Consumes the order queue, which is bound to the account, restaurant and
payment exchanges, and dispatches each message by routing key to the
matching inbound event handler.

Failure handling per message:
- unknown routing key: logged and acknowledged
- malformed payload or rejected by the domain: dead-lettered at once
- any other error: retried with capped exponential backoff, then
  dead-lettered once the attempts are exhausted

A message is acknowledged only after it was handled or dead-lettered, so a
crash or a lost connection leads to redelivery rather than loss.
"""

import re
import threading
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.exceptions import InvalidDataError, ValidationError
from protean.utils.reflection import declared_fields
from shared.events.accounts import AccountDeleted
from shared.events.payments import PaymentFailed, PaymentSucceeded
from shared.events.restaurants import RestaurantDeleted, RestaurantStatusChanged

from food_ordering.exceptions import InfrastructureError, InvalidStateError
from food_ordering.messaging import topics
from food_ordering.messaging.port import BrokerConnection, Delivery
from food_ordering.order.account_events import AccountEventHandler
from food_ordering.order.payment_events import PaymentEventHandler
from food_ordering.order.restaurant_events import RestaurantEventHandler
from food_ordering.utils.logging import bind_context, clear_context

logger = structlog.get_logger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

# Errors that no amount of retrying will fix
PERMANENT_ERRORS = (ValidationError, InvalidStateError)


class Outcome(Enum):
    HANDLED = "handled"
    IGNORED = "ignored"
    DEAD_LETTERED = "dead_lettered"


@dataclass(frozen=True)
class Route:
    event_cls: type
    handler_cls: type
    method: str


ROUTES = {
    topics.ACCOUNT_DELETED: Route(AccountDeleted, AccountEventHandler, "on_account_deleted"),
    topics.RESTAURANT_STATUS_CHANGED: Route(
        RestaurantStatusChanged, RestaurantEventHandler, "on_restaurant_status_changed"
    ),
    topics.RESTAURANT_DELETED: Route(RestaurantDeleted, RestaurantEventHandler, "on_restaurant_deleted"),
    topics.PAYMENT_SUCCEEDED: Route(PaymentSucceeded, PaymentEventHandler, "on_payment_succeeded"),
    topics.PAYMENT_FAILED: Route(PaymentFailed, PaymentEventHandler, "on_payment_failed"),
}


def to_snake_case(payload: dict) -> dict:
    return {_CAMEL_BOUNDARY.sub("_", key).lower(): value for key, value in payload.items()}


def build_event(event_cls, payload: dict):
    """Construct an inbound event from a camelCase payload, ignoring unknown keys."""
    if not isinstance(payload, dict):
        raise ValidationError({"payload": ["Message payload must be a JSON object"]})
    known = declared_fields(event_cls)
    data = {key: value for key, value in to_snake_case(payload).items() if key in known}
    try:
        return event_cls(**data)
    except InvalidDataError as exc:
        raise ValidationError(exc.messages) from exc


class EventReactor:
    def __init__(
        self,
        domain,
        connection: BrokerConnection,
        queue: str,
        dead_letter_exchange: str,
        supervisor=None,
        retry_attempts: int = 3,
        retry_initial_delay: float = 0.5,
        retry_max_delay: float = 10.0,
        poll_timeout: float = 1.0,
        sleep=time.sleep,
    ) -> None:
        self.domain = domain
        self.connection = connection
        self.queue = queue
        self.dead_letter_exchange = dead_letter_exchange
        self.supervisor = supervisor
        self.retry_attempts = retry_attempts
        self.retry_initial_delay = retry_initial_delay
        self.retry_max_delay = retry_max_delay
        self.poll_timeout = poll_timeout
        self._sleep = sleep

    def retry_delay(self, attempt: int) -> float:
        return min(self.retry_initial_delay * 2 ** (attempt - 1), self.retry_max_delay)

    # -------------------------------------------------------------------
    # Consumption loop
    # -------------------------------------------------------------------
    def run(self, stop_event: threading.Event) -> None:
        """Consume until ``stop_event`` is set, reconnecting as needed."""
        logger.info("Event reactor started", queue=self.queue)
        while not stop_event.is_set():
            if not self.connection.is_open:
                if self.supervisor is None or not self.supervisor.connect(stop_event):
                    break
            try:
                self.process_one(timeout=self.poll_timeout)
            except InfrastructureError as exc:
                logger.warning("Reactor lost the broker connection", error=exc.message)
                if self.supervisor is not None:
                    self.supervisor.mark_lost(exc)
        logger.info("Event reactor stopped", queue=self.queue)

    def drain(self, max_messages: int | None = None) -> int:
        """Process queued messages without waiting. Returns how many were processed."""
        processed = 0
        while max_messages is None or processed < max_messages:
            if self.process_one(timeout=0) is None:
                break
            processed += 1
        return processed

    def process_one(self, timeout: float = 0.0) -> Outcome | None:
        """Fetch and process one message. Returns None when the queue is empty."""
        delivery = self.connection.fetch(self.queue, timeout=timeout)
        if delivery is None:
            return None

        outcome = self.handle(delivery)
        self.connection.ack(delivery)
        return outcome

    # -------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------
    def handle(self, delivery: Delivery) -> Outcome:
        bind_context(delivery_id=delivery.delivery_id, routing_key=delivery.routing_key)
        try:
            return self._dispatch(delivery)
        finally:
            clear_context()

    def _dispatch(self, delivery: Delivery) -> Outcome:
        routing_key = topics.normalize_routing_key(delivery.routing_key)
        route = ROUTES.get(routing_key)
        if route is None:
            logger.info("No handler for event, ignoring", routing_key=delivery.routing_key, exchange=delivery.exchange)
            return Outcome.IGNORED

        attempt = 0
        while True:
            attempt += 1
            try:
                with self.domain.domain_context():
                    event = build_event(route.event_cls, delivery.payload)
                    getattr(route.handler_cls(), route.method)(event)
            except PERMANENT_ERRORS as exc:
                self.dead_letter(delivery, exc, attempt)
                return Outcome.DEAD_LETTERED
            except Exception as exc:
                if attempt >= self.retry_attempts:
                    self.dead_letter(delivery, exc, attempt)
                    return Outcome.DEAD_LETTERED
                delay = self.retry_delay(attempt)
                logger.warning(
                    "Event handling failed, retrying",
                    routing_key=delivery.routing_key,
                    attempt=attempt,
                    delay=delay,
                    error=str(exc),
                )
                self._sleep(delay)
            else:
                logger.info("Processed event", routing_key=delivery.routing_key, attempts=attempt)
                return Outcome.HANDLED

    def dead_letter(self, delivery: Delivery, error: Exception, attempts: int) -> None:
        """Park a message on the dead-letter exchange with its failure details.

        Raises ``InfrastructureError`` if the dead-letter publish fails, leaving
        the original message unacknowledged.
        """
        headers = {
            **delivery.headers,
            "x-original-exchange": delivery.exchange,
            "x-original-routing-key": delivery.routing_key,
            "x-error-type": type(error).__name__,
            "x-error": str(getattr(error, "messages", error)),
            "x-attempts": attempts,
            "x-dead-lettered-at": datetime.now(UTC).isoformat(),
        }
        self.connection.publish(self.dead_letter_exchange, delivery.routing_key, delivery.payload, headers=headers)
        logger.error(
            "Event dead-lettered",
            routing_key=delivery.routing_key,
            exchange=self.dead_letter_exchange,
            attempts=attempts,
            error_type=type(error).__name__,
            error=str(error),
        )
