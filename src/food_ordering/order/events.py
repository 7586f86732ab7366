"""Domain events for the Order aggregate.

Every event carries the order's identity (id, number, owner, restaurant) so
subscribers can act on it without reading the order back.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from food_ordering.domain import food_ordering


@food_ordering.event(part_of="Order")
class OrderCreated:
    """A customer placed an order from their cart."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    restaurant_id = Identifier(required=True)
    total_amount = Float(required=True)
    status = String(required=True)
    item_count = Integer(required=True)
    created_at = DateTime(required=True)


@food_ordering.event(part_of="Order")
class OrderStatusUpdated:
    """The restaurant or the system moved the order to a new status."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    restaurant_id = Identifier(required=True)
    status = String(required=True)
    previous_status = String()
    estimated_delivery_time = DateTime()


@food_ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled by its customer, the restaurant, or the system."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    restaurant_id = Identifier(required=True)
    reason = Text(required=True)
    cancelled_by = String(required=True)
    cancelled_at = DateTime(required=True)


@food_ordering.event(part_of="Order")
class OrderDetailsUpdated:
    """Delivery address, contact phone, or instructions of a pending order changed."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    restaurant_id = Identifier(required=True)


@food_ordering.event(part_of="Order")
class OrderDeliveryAssigned:
    """The delivery service attached its delivery and courier to the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    restaurant_id = Identifier(required=True)
    delivery_id = Identifier(required=True)
    delivery_person_id = Identifier()
    delivery_person_name = String()


@food_ordering.event(part_of="Order")
class OrderPaymentUpdated:
    """The payment service reported the outcome of the order's payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    restaurant_id = Identifier(required=True)
    payment_status = String(required=True)
