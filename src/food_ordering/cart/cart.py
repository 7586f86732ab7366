"""Cart aggregate — a customer's pending selection from a single restaurant.

One cart exists per user. It is created lazily on the first add, emptied
(not deleted) when an order is placed from it, and deleted only when its
owner or its restaurant disappears. All lines belong to the restaurant the
cart is bound to; adding an item from another restaurant empties the cart
and rebinds it.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from food_ordering.cart.events import CartCleared, CartUpdated
from food_ordering.domain import food_ordering


def calculate_total(items) -> float:
    """Sum of price × quantity over cart or order lines."""
    return round(sum(item.price * item.quantity for item in items), 2)


@food_ordering.entity(part_of="Cart")
class CartItem:
    menu_item_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    image = String(max_length=1024)
    notes = Text()


@food_ordering.aggregate
class Cart:
    user_id = Identifier(required=True, unique=True)
    restaurant_id = Identifier()
    restaurant_name = String(max_length=255)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def items_require_a_restaurant(self):
        if self.items and not self.restaurant_id:
            raise ValidationError({"restaurant_id": ["A cart with items must be bound to a restaurant"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, user_id, restaurant_id=None, restaurant_name=None):
        now = datetime.now(UTC)
        return cls(
            user_id=user_id,
            restaurant_id=restaurant_id,
            restaurant_name=restaurant_name,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def total(self) -> float:
        return calculate_total(self.items)

    def find_item(self, item_id):
        """Return the line matching a line id or a menu item id.

        Raises ``ObjectNotFoundError`` when the cart has no such line.
        """
        for item in self.items:
            if str(item.id) == str(item_id) or str(item.menu_item_id) == str(item_id):
                return item
        raise ObjectNotFoundError({"item_id": ["Item not found in cart"]})

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(
        self,
        menu_item_id,
        name,
        price,
        quantity,
        restaurant_id,
        restaurant_name,
        image=None,
        notes=None,
    ):
        """Add a menu item, merging with an existing line for the same item.

        An item from a different restaurant than the cart is bound to empties
        the cart first and rebinds it to the new restaurant.
        """
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        if self.restaurant_id and str(self.restaurant_id) != str(restaurant_id):
            self._remove_all_items()
        self.restaurant_id = restaurant_id
        self.restaurant_name = restaurant_name

        existing = next((i for i in self.items if str(i.menu_item_id) == str(menu_item_id)), None)
        if existing:
            existing.quantity += quantity
            if notes:
                existing.notes = notes
        else:
            self.add_items(
                CartItem(
                    menu_item_id=menu_item_id,
                    name=name,
                    price=price,
                    quantity=quantity,
                    image=image,
                    notes=notes,
                )
            )

        self._touch()
        self._raise_updated()

    def update_item(self, item_id, quantity, notes=None):
        """Set the quantity (and optionally the note) of an existing line."""
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        item = self.find_item(item_id)
        item.quantity = quantity
        if notes is not None:
            item.notes = notes

        self._touch()
        self._raise_updated()

    def remove_item(self, item_id):
        item = self.find_item(item_id)
        self.remove_items(item)

        self._touch()
        self._raise_updated()

    def clear(self):
        """Empty the cart in place. The restaurant binding is kept."""
        self._remove_all_items()
        self._touch()
        self.raise_(CartCleared(cart_id=str(self.id), user_id=str(self.user_id)))

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _remove_all_items(self):
        for item in list(self.items):
            self.remove_items(item)

    def _touch(self):
        self.updated_at = datetime.now(UTC)

    def _raise_updated(self):
        self.raise_(
            CartUpdated(
                cart_id=str(self.id),
                user_id=str(self.user_id),
                restaurant_id=str(self.restaurant_id) if self.restaurant_id else None,
                item_count=len(self.items),
                total=self.total,
            )
        )
