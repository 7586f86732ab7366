"""Authorization policy for cart and order operations.

The HTTP gateway authenticates callers and forwards a principal; every
role and ownership rule of the ordering domain is decided here, so command
handlers and read endpoints share a single gate.
"""

from dataclasses import dataclass
from enum import Enum

from protean.exceptions import ValidationError

from food_ordering.exceptions import Forbidden


class Role(Enum):
    CUSTOMER = "customer"
    RESTAURANT_ADMIN = "restaurant_admin"
    SYSTEM_ADMIN = "system_admin"
    DELIVERY_PERSON = "delivery_person"
    DELIVERY_ADMIN = "delivery_admin"


class Action(Enum):
    MANAGE_CART = "manage_cart"
    PLACE_ORDER = "place_order"
    LIST_OWN_ORDERS = "list_own_orders"
    LIST_RESTAURANT_ORDERS = "list_restaurant_orders"
    LIST_ALL_ORDERS = "list_all_orders"
    VIEW_ORDER = "view_order"
    UPDATE_STATUS = "update_status"
    CANCEL_ORDER = "cancel_order"
    UPDATE_DETAILS = "update_details"
    UPDATE_DELIVERY_INFO = "update_delivery_info"
    VIEW_RESTAURANT_STATS = "view_restaurant_stats"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as handed in by the gateway."""

    id: str
    role: Role
    email: str | None = None
    restaurant_id: str | None = None

    @classmethod
    def build(cls, id, role, email=None, restaurant_id=None) -> "Principal":
        """Build a principal from raw values, rejecting unknown roles."""
        if not id:
            raise ValidationError({"actor_id": ["is required"]})
        try:
            parsed_role = role if isinstance(role, Role) else Role(role)
        except ValueError:
            raise ValidationError({"actor_role": [f"Unknown role: {role}"]}) from None
        return cls(id=str(id), role=parsed_role, email=email, restaurant_id=restaurant_id)

    @property
    def is_customer(self) -> bool:
        return self.role == Role.CUSTOMER


_STAFF = frozenset({Role.RESTAURANT_ADMIN, Role.SYSTEM_ADMIN})

# Actions limited to a fixed set of roles, regardless of ownership
_ROLE_RESTRICTED = {
    Action.UPDATE_STATUS: _STAFF,
    Action.LIST_RESTAURANT_ORDERS: _STAFF,
    Action.VIEW_RESTAURANT_STATS: _STAFF,
    Action.UPDATE_DELIVERY_INFO: _STAFF | {Role.DELIVERY_ADMIN},
    Action.LIST_ALL_ORDERS: frozenset({Role.SYSTEM_ADMIN}),
}

# Actions any role may take on an order, except that customers must own it
_OWNER_OR_NON_CUSTOMER = frozenset({Action.VIEW_ORDER, Action.CANCEL_ORDER, Action.UPDATE_DETAILS})

# Actions on the caller's own data
_SELF_SERVICE = frozenset({Action.MANAGE_CART, Action.PLACE_ORDER, Action.LIST_OWN_ORDERS})

_DENIAL_MESSAGES = {
    Action.UPDATE_STATUS: "Not authorized to update this order",
    Action.LIST_RESTAURANT_ORDERS: "Not authorized to view restaurant orders",
    Action.VIEW_RESTAURANT_STATS: "Not authorized to view restaurant order statistics",
    Action.UPDATE_DELIVERY_INFO: "Not authorized to update delivery information",
    Action.LIST_ALL_ORDERS: "Not authorized to view all orders",
    Action.VIEW_ORDER: "Not authorized to view this order",
    Action.CANCEL_ORDER: "Not authorized to cancel this order",
    Action.UPDATE_DETAILS: "Not authorized to update this order",
}


class AuthorizationPolicy:
    """Decides whether a principal may perform an action on a resource.

    ``owner_id`` is the user id owning the resource (a cart or an order);
    it only matters for actions where ownership is checked.
    """

    def allows(self, principal: Principal, action: Action, owner_id: str | None = None) -> bool:
        if action in _ROLE_RESTRICTED:
            return principal.role in _ROLE_RESTRICTED[action]

        if action in _OWNER_OR_NON_CUSTOMER:
            if not principal.is_customer:
                return True
            return owner_id is not None and str(owner_id) == principal.id

        if action in _SELF_SERVICE:
            return owner_id is None or str(owner_id) == principal.id

        return False

    def enforce(self, principal: Principal, action: Action, owner_id: str | None = None) -> None:
        """Raise ``Forbidden`` unless the principal may perform the action."""
        if not self.allows(principal, action, owner_id):
            message = _DENIAL_MESSAGES.get(action, f"Role {principal.role.value} is not authorized")
            raise Forbidden({"authorization": [message]})


policy = AuthorizationPolicy()


def actor_of(command) -> Principal:
    """Rebuild the principal carried on a command's ``actor_*`` fields."""
    return Principal.build(
        id=command.actor_id,
        role=command.actor_role,
        restaurant_id=getattr(command, "actor_restaurant_id", None),
    )
