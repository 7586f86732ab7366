"""Order detail edits — command and handler.

Only the delivery address, contact phone and special instructions of a
pending order can change; items and totals are fixed at placement.
"""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from food_ordering.authorization import Action, actor_of, policy
from food_ordering.domain import food_ordering
from food_ordering.order.order import Order


@food_ordering.command(part_of="Order")
class UpdateOrderDetails:
    order_id = Identifier(required=True)
    delivery_address = Text()  # JSON: address dict
    contact_phone = String(max_length=30)
    special_instructions = Text()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=30)


@food_ordering.command_handler(part_of=Order)
class UpdateOrderDetailsHandler:
    @handle(UpdateOrderDetails)
    def update_details(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        policy.enforce(actor_of(command), Action.UPDATE_DETAILS, owner_id=order.user_id)

        delivery_address = command.delivery_address
        if isinstance(delivery_address, str):
            delivery_address = json.loads(delivery_address)

        order.update_details(
            delivery_address=delivery_address,
            contact_phone=command.contact_phone,
            special_instructions=command.special_instructions,
        )
        repo.add(order)
        return str(order.id)
