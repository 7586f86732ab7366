"""Food ordering bounded context — carts, orders, and their domain events.

Owns the per-customer cart, the order record and its fulfillment status
machine, and the compensations applied when account, restaurant, or payment
facts owned by other services change.
"""

import structlog
from protean.domain import Domain

food_ordering = Domain(name="food_ordering")

logger = structlog.get_logger(__name__)
