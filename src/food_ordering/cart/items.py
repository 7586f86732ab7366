"""Cart item management — commands and handler."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from food_ordering.cart.cart import Cart
from food_ordering.domain import food_ordering

logger = structlog.get_logger(__name__)


@food_ordering.command(part_of="Cart")
class AddToCart:
    user_id = Identifier(required=True)
    menu_item_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    restaurant_id = Identifier(required=True)
    restaurant_name = String(required=True, max_length=255)
    image = String(max_length=1024)
    notes = Text()


@food_ordering.command(part_of="Cart")
class UpdateCartItem:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    notes = Text()


@food_ordering.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    item_id = Identifier(required=True)


@food_ordering.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


def load_cart(user_id) -> Cart:
    """Fetch the user's cart, raising ``ObjectNotFoundError`` if they have none."""
    cart = current_domain.repository_for(Cart).for_user(user_id)
    if cart is None:
        raise ObjectNotFoundError({"cart": ["Cart not found"]})
    return cart


@food_ordering.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)
        if cart is None:
            cart = Cart.create(
                user_id=command.user_id,
                restaurant_id=command.restaurant_id,
                restaurant_name=command.restaurant_name,
            )
        elif cart.restaurant_id and str(cart.restaurant_id) != str(command.restaurant_id):
            logger.info(
                "Cart rebound to a different restaurant",
                user_id=str(command.user_id),
                previous_restaurant_id=str(cart.restaurant_id),
                restaurant_id=str(command.restaurant_id),
            )

        cart.add_item(
            menu_item_id=command.menu_item_id,
            name=command.name,
            price=command.price,
            quantity=command.quantity,
            restaurant_id=command.restaurant_id,
            restaurant_name=command.restaurant_name,
            image=command.image,
            notes=command.notes,
        )
        repo.add(cart)
        return str(cart.id)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        cart = load_cart(command.user_id)
        cart.update_item(
            item_id=command.item_id,
            quantity=command.quantity,
            notes=command.notes,
        )
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        cart = load_cart(command.user_id)
        cart.remove_item(item_id=command.item_id)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = load_cart(command.user_id)
        cart.clear()
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)
