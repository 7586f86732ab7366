"""Cross-service event contracts for payment events.

Published by the payment service on the ``payment_events`` exchange. Only
``order_id`` is guaranteed; the payment service may omit the rest.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Float, Identifier, String


class PaymentSucceeded(BaseEvent):
    """The payment for an order was captured."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier()
    amount = Float()
    succeeded_at = DateTime()


class PaymentFailed(BaseEvent):
    """The payment for an order was declined or errored."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = Identifier()
    reason = String(max_length=500)
    failed_at = DateTime()
