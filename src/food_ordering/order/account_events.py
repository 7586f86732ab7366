"""Inbound cross-service event handler — reacts to account events.

When a user account is deleted, the personal data held on that user's orders
is redacted and their cart is removed. Orders themselves are kept for the
restaurant's records.
"""

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.accounts import AccountDeleted

from food_ordering.cart.cart import Cart
from food_ordering.domain import food_ordering
from food_ordering.order.order import Order

logger = structlog.get_logger(__name__)

food_ordering.register_external_event(AccountDeleted, "Accounts.AccountDeleted.v1")


@food_ordering.event_handler(part_of=Order, stream_category="accounts::account")
class AccountEventHandler:
    """Removes a deleted user's personal data from orders and carts."""

    @handle(AccountDeleted)
    def on_account_deleted(self, event: AccountDeleted) -> None:
        order_repo = current_domain.repository_for(Order)
        orders = order_repo.all_for_user(event.user_id)
        for order in orders:
            order.anonymize()
            order_repo.add(order)

        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.for_user(event.user_id)
        if cart is not None:
            cart_repo.remove(cart)

        logger.info(
            "Anonymized orders of deleted account",
            user_id=str(event.user_id),
            orders=len(orders),
            cart_removed=cart is not None,
        )
