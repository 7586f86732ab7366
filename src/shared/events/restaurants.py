"""Cross-service event contracts for restaurant events.

Published by the restaurant service on the ``restaurant_events`` exchange.
"""

from protean.core.event import BaseEvent
from protean.fields import Boolean, DateTime, Identifier


class RestaurantStatusChanged(BaseEvent):
    """A restaurant was activated or deactivated."""

    __version__ = 1

    restaurant_id = Identifier(required=True)
    is_active = Boolean(required=True)
    changed_at = DateTime()


class RestaurantDeleted(BaseEvent):
    """A restaurant was removed from the platform."""

    __version__ = 1

    restaurant_id = Identifier(required=True)
    deleted_at = DateTime()
