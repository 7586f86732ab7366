"""Delivery linkage — command and handler.

The delivery service creates a delivery for the order elsewhere and reports
its identifiers back here.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from food_ordering.authorization import Action, actor_of, policy
from food_ordering.domain import food_ordering
from food_ordering.order.order import Order


@food_ordering.command(part_of="Order")
class UpdateDeliveryInfo:
    order_id = Identifier(required=True)
    delivery_id = Identifier()
    delivery_person_id = Identifier()
    delivery_person_name = String(max_length=255)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=30)


@food_ordering.command_handler(part_of=Order)
class UpdateDeliveryInfoHandler:
    @handle(UpdateDeliveryInfo)
    def update_delivery_info(self, command):
        policy.enforce(actor_of(command), Action.UPDATE_DELIVERY_INFO)

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assign_delivery(
            delivery_id=command.delivery_id,
            delivery_person_id=command.delivery_person_id,
            delivery_person_name=command.delivery_person_name,
        )
        repo.add(order)
        return str(order.id)
