"""Food ordering HTTP API package."""

from food_ordering.api.errors import register_error_handlers
from food_ordering.api.routes import cart_router, order_router

__all__ = ["cart_router", "order_router", "register_error_handlers"]
