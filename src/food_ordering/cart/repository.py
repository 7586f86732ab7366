"""Repository for the Cart aggregate."""

from food_ordering.cart.cart import Cart
from food_ordering.domain import food_ordering
from food_ordering.utils.query import fetch_all


@food_ordering.repository(part_of=Cart)
class CartRepository:
    """Cart lookups by owner and by bound restaurant."""

    def for_user(self, user_id) -> Cart | None:
        """Return the user's cart, or None if they have never added an item."""
        carts = self._dao.query.filter(user_id=str(user_id)).all().items
        return carts[0] if carts else None

    def for_restaurant(self, restaurant_id) -> list[Cart]:
        return fetch_all(self._dao.query.filter(restaurant_id=str(restaurant_id)))

    def remove(self, cart: Cart) -> None:
        self._dao.delete(cart)
