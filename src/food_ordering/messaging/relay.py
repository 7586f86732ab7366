"""Relays committed domain events to the order exchange.

Protean persists raised events with the aggregate change and dispatches them
to these handlers after the unit of work commits, so a published message
always describes a state that was actually stored. Payloads keep the flat
camelCase shape other services already consume.
"""

from protean.utils.mixins import handle

from food_ordering.cart.cart import Cart
from food_ordering.cart.events import CartCleared, CartUpdated
from food_ordering.domain import food_ordering
from food_ordering.messaging import topics
from food_ordering.messaging.publisher import get_publisher
from food_ordering.order.events import (
    OrderCancelled,
    OrderCreated,
    OrderDeliveryAssigned,
    OrderDetailsUpdated,
    OrderPaymentUpdated,
    OrderStatusUpdated,
)
from food_ordering.order.order import Order


def _iso(value):
    return value.isoformat() if value is not None else None


def _order_identity(event) -> dict:
    return {
        "orderId": str(event.order_id),
        "orderNumber": event.order_number,
        "userId": str(event.user_id),
        "restaurantId": str(event.restaurant_id),
    }


@food_ordering.event_handler(part_of=Order)
class OrderEventRelay:
    @handle(OrderCreated)
    def order_created(self, event: OrderCreated) -> None:
        get_publisher().publish(
            topics.ORDER_CREATED,
            {
                **_order_identity(event),
                "totalAmount": event.total_amount,
                "status": event.status,
                "items": event.item_count,
            },
        )

    @handle(OrderStatusUpdated)
    def order_status_updated(self, event: OrderStatusUpdated) -> None:
        get_publisher().publish(
            topics.ORDER_STATUS_UPDATED,
            {
                **_order_identity(event),
                "status": event.status,
                "previousStatus": event.previous_status,
                "estimatedDeliveryTime": _iso(event.estimated_delivery_time),
            },
        )

    @handle(OrderCancelled)
    def order_cancelled(self, event: OrderCancelled) -> None:
        get_publisher().publish(
            topics.ORDER_CANCELLED,
            {
                **_order_identity(event),
                "cancellationReason": event.reason,
                "cancelledBy": event.cancelled_by,
            },
        )

    @handle(OrderDetailsUpdated)
    def order_details_updated(self, event: OrderDetailsUpdated) -> None:
        get_publisher().publish(topics.ORDER_DETAILS_UPDATED, _order_identity(event))

    @handle(OrderDeliveryAssigned)
    def order_delivery_assigned(self, event: OrderDeliveryAssigned) -> None:
        get_publisher().publish(
            topics.ORDER_DELIVERY_ASSIGNED,
            {
                **_order_identity(event),
                "deliveryId": str(event.delivery_id),
                "deliveryPersonId": event.delivery_person_id,
                "deliveryPersonName": event.delivery_person_name,
            },
        )

    @handle(OrderPaymentUpdated)
    def order_payment_updated(self, event: OrderPaymentUpdated) -> None:
        get_publisher().publish(
            topics.ORDER_PAYMENT_UPDATED,
            {**_order_identity(event), "paymentStatus": event.payment_status},
        )


@food_ordering.event_handler(part_of=Cart)
class CartEventRelay:
    @handle(CartUpdated)
    def cart_updated(self, event: CartUpdated) -> None:
        get_publisher().publish(
            topics.CART_UPDATED,
            {
                "userId": str(event.user_id),
                "cartId": str(event.cart_id),
                "restaurantId": event.restaurant_id,
                "itemCount": event.item_count,
                "total": event.total,
            },
        )

    @handle(CartCleared)
    def cart_cleared(self, event: CartCleared) -> None:
        get_publisher().publish(
            topics.CART_CLEARED,
            {"userId": str(event.user_id), "cartId": str(event.cart_id)},
        )
