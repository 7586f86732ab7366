"""Order placement — command and handler.

The order is built from the customer's cart and the cart is emptied in the
same unit of work, so either both changes commit or neither does.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from food_ordering.cart.cart import Cart
from food_ordering.domain import food_ordering
from food_ordering.exceptions import EmptyCartError
from food_ordering.order.numbering import generate_order_number
from food_ordering.order.order import Order, PaymentMethod

logger = structlog.get_logger(__name__)


@food_ordering.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier(required=True)
    delivery_address = Text(required=True)  # JSON: address dict
    contact_phone = String(required=True, max_length=30)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CASH_ON_DELIVERY.value)
    special_instructions = Text()


@food_ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart_repo = current_domain.repository_for(Cart)
        order_repo = current_domain.repository_for(Order)

        cart = cart_repo.for_user(command.user_id)
        if cart is None or not cart.items:
            raise EmptyCartError({"cart": ["Cart is empty"]})

        delivery_address = (
            json.loads(command.delivery_address)
            if isinstance(command.delivery_address, str)
            else command.delivery_address
        )

        order = Order.place(
            order_number=generate_order_number(lambda number: order_repo.by_number(number) is not None),
            user_id=command.user_id,
            restaurant_id=cart.restaurant_id,
            restaurant_name=cart.restaurant_name,
            items=cart.items,
            delivery_address=delivery_address,
            contact_phone=command.contact_phone,
            payment_method=command.payment_method,
            special_instructions=command.special_instructions,
        )
        cart.clear()

        order_repo.add(order)
        cart_repo.add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id),
            restaurant_id=str(order.restaurant_id),
            total_amount=order.total_amount,
        )
        return str(order.id)
