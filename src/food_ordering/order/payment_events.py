"""Inbound cross-service event handler — reacts to payment events.

An unknown order id raises ``ObjectNotFoundError``; the payment may have
been reported before the order became visible, so the reactor retries it.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.payments import PaymentFailed, PaymentSucceeded

from food_ordering.domain import food_ordering
from food_ordering.order.order import Order, PaymentStatus

logger = structlog.get_logger(__name__)

food_ordering.register_external_event(PaymentSucceeded, "Payments.PaymentSucceeded.v1")
food_ordering.register_external_event(PaymentFailed, "Payments.PaymentFailed.v1")


def _record_outcome(order_id, outcome: PaymentStatus) -> None:
    repo = current_domain.repository_for(Order)
    order = repo.get(order_id)
    order.record_payment_outcome(outcome.value)
    repo.add(order)


@food_ordering.event_handler(part_of=Order, stream_category="payments::payment")
class PaymentEventHandler:
    @handle(PaymentSucceeded)
    def on_payment_succeeded(self, event: PaymentSucceeded) -> None:
        logger.info("Recording successful payment", order_id=str(event.order_id), payment_id=event.payment_id)
        _record_outcome(event.order_id, PaymentStatus.COMPLETED)

    @handle(PaymentFailed)
    def on_payment_failed(self, event: PaymentFailed) -> None:
        logger.info(
            "Recording failed payment",
            order_id=str(event.order_id),
            payment_id=event.payment_id,
            reason=event.reason,
        )
        _record_outcome(event.order_id, PaymentStatus.FAILED)
