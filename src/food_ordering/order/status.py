"""Order status updates — command and handler."""

from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from food_ordering.authorization import Action, actor_of, policy
from food_ordering.domain import food_ordering
from food_ordering.order.order import Order


@food_ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=30)
    estimated_delivery_time = DateTime()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=30)


@food_ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        policy.enforce(actor_of(command), Action.UPDATE_STATUS)

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.update_status(
            new_status=command.status,
            estimated_delivery_time=command.estimated_delivery_time,
        )
        repo.add(order)
        return str(order.id)
