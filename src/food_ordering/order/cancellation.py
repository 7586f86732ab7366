"""Order cancellation — command and handler.

Customers cancel their own orders; restaurant and platform staff may cancel
any order. System-initiated cancellations (restaurant deactivation) call
``Order.cancel`` directly from the restaurant event handler.
"""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from food_ordering.authorization import Action, actor_of, policy
from food_ordering.domain import food_ordering
from food_ordering.order.order import Order


@food_ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = Text()
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=30)


@food_ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        actor = actor_of(command)
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        policy.enforce(actor, Action.CANCEL_ORDER, owner_id=order.user_id)

        if order.cancel(cancelled_by=actor.role.value, reason=command.reason):
            repo.add(order)
        return str(order.id)
