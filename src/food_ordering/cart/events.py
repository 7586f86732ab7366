"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer

from food_ordering.domain import food_ordering


@food_ordering.event(part_of="Cart")
class CartUpdated:
    """Items were added to, changed in, or removed from a cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
    restaurant_id = Identifier()
    item_count = Integer(required=True)
    total = Float(required=True)


@food_ordering.event(part_of="Cart")
class CartCleared:
    """Every item was removed from a cart; the cart itself remains."""

    __version__ = 1

    cart_id = Identifier(required=True)
    user_id = Identifier(required=True)
