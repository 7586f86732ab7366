"""Inbound cross-service event handler — reacts to restaurant events.

A deactivated restaurant can no longer honour orders it has not started
preparing, so those are cancelled on behalf of the system. A deleted
restaurant keeps its order history under a sentinel name, and carts bound
to it are discarded.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.restaurants import RestaurantDeleted, RestaurantStatusChanged

from food_ordering.cart.cart import Cart
from food_ordering.domain import food_ordering
from food_ordering.order.order import (
    RESTAURANT_CANCELLABLE_STATES,
    CancellationActor,
    Order,
)

logger = structlog.get_logger(__name__)

DEACTIVATION_REASON = "Restaurant deactivated"

food_ordering.register_external_event(RestaurantStatusChanged, "Restaurants.RestaurantStatusChanged.v1")
food_ordering.register_external_event(RestaurantDeleted, "Restaurants.RestaurantDeleted.v1")


@food_ordering.event_handler(part_of=Order, stream_category="restaurants::restaurant")
class RestaurantEventHandler:
    @handle(RestaurantStatusChanged)
    def on_restaurant_status_changed(self, event: RestaurantStatusChanged) -> None:
        """Cancel pending and confirmed orders of a deactivated restaurant."""
        if event.is_active:
            return

        repo = current_domain.repository_for(Order)
        orders = repo.open_for_restaurant(event.restaurant_id, RESTAURANT_CANCELLABLE_STATES)
        for order in orders:
            order.cancel(cancelled_by=CancellationActor.SYSTEM.value, reason=DEACTIVATION_REASON)
            repo.add(order)

        logger.info(
            "Cancelled open orders of deactivated restaurant",
            restaurant_id=str(event.restaurant_id),
            cancelled=len(orders),
        )

    @handle(RestaurantDeleted)
    def on_restaurant_deleted(self, event: RestaurantDeleted) -> None:
        """Relabel the restaurant's orders and discard carts bound to it."""
        order_repo = current_domain.repository_for(Order)
        orders = order_repo.all_for_restaurant(event.restaurant_id)
        for order in orders:
            order.mark_restaurant_deleted()
            order_repo.add(order)

        cart_repo = current_domain.repository_for(Cart)
        carts = cart_repo.for_restaurant(event.restaurant_id)
        for cart in carts:
            cart_repo.remove(cart)

        logger.info(
            "Relabelled orders of deleted restaurant",
            restaurant_id=str(event.restaurant_id),
            orders=len(orders),
            carts_removed=len(carts),
        )
