"""Order aggregate — an immutable item snapshot inside a mutable status envelope.

An order is created from a non-empty cart. Its items, restaurant identity and
total are copied from the cart at that moment and never recomputed, so later
menu or price changes cannot alter a placed order. Afterwards only the
status, payment, delivery-linkage and (while pending) contact details change.

Status Machine:
    pending → confirmed → preparing → ready → out_for_delivery → delivered
    cancelled is reachable from every non-terminal status
    delivered and cancelled are terminal

Status updates may skip forward stages but never move backward or leave a
terminal status. The special instructions field doubles as an append-only
audit trail for cancellations and system actions.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text, ValueObject

from food_ordering.cart.cart import calculate_total
from food_ordering.domain import food_ordering
from food_ordering.exceptions import EmptyCartError, InvalidStateError
from food_ordering.order.events import (
    OrderCancelled,
    OrderCreated,
    OrderDeliveryAssigned,
    OrderDetailsUpdated,
    OrderPaymentUpdated,
    OrderStatusUpdated,
)

REDACTED = "DELETED"
DELETED_RESTAURANT = "DELETED RESTAURANT"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    CASH_ON_DELIVERY = "cash_on_delivery"
    WALLET = "wallet"


class CancellationActor(Enum):
    SYSTEM = "system"


# Forward fulfillment sequence; a status may only move to a later position
FULFILLMENT_SEQUENCE = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
]

TERMINAL_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Orders a deactivated restaurant can no longer honour
RESTAURANT_CANCELLABLE_STATES = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

_ADDRESS_PARTS = ("street", "city", "state", "zip_code")


def next_status(status: OrderStatus) -> OrderStatus | None:
    """The status following ``status`` in the fulfillment sequence, if any."""
    if status not in FULFILLMENT_SEQUENCE or status == OrderStatus.DELIVERED:
        return None
    return FULFILLMENT_SEQUENCE[FULFILLMENT_SEQUENCE.index(status) + 1]


def parse_status(value) -> OrderStatus:
    """Convert a raw status value, rejecting anything outside the vocabulary."""
    try:
        return value if isinstance(value, OrderStatus) else OrderStatus(value)
    except ValueError:
        raise ValidationError({"status": ["Invalid status"]}) from None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@food_ordering.value_object(part_of="Order")
class DeliveryAddress:
    """Where the order is delivered, captured when the order is placed."""

    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    zip_code = String(required=True, max_length=20)
    latitude = Float(min_value=-90.0, max_value=90.0)
    longitude = Float(min_value=-180.0, max_value=180.0)

    @classmethod
    def from_dict(cls, data) -> "DeliveryAddress":
        """Build an address, requiring street, city, state and zip code."""
        if not data or any(not data.get(part) for part in _ADDRESS_PARTS):
            raise ValidationError(
                {"delivery_address": ["Delivery address must include street, city, state, and zipCode"]}
            )
        return cls(
            street=data["street"],
            city=data["city"],
            state=data["state"],
            zip_code=data["zip_code"],
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
        )

    @classmethod
    def redacted(cls) -> "DeliveryAddress":
        return cls(street=REDACTED, city=REDACTED, state=REDACTED, zip_code=REDACTED)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@food_ordering.entity(part_of="Order")
class OrderItem:
    """A menu item as it was in the cart when the order was placed."""

    menu_item_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    image = String(max_length=1024)
    notes = Text()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@food_ordering.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    user_id = Identifier(required=True)
    restaurant_id = Identifier(required=True)
    restaurant_name = String(required=True, max_length=255)
    items = HasMany(OrderItem)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    total_amount = Float(required=True, min_value=0.0)
    delivery_address = ValueObject(DeliveryAddress)
    contact_phone = String(required=True, max_length=30)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CASH_ON_DELIVERY.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    estimated_delivery_time = DateTime()
    special_instructions = Text()
    delivery_id = Identifier()
    delivery_person_id = Identifier()
    delivery_person_name = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_a_delivery_address(self):
        if self.delivery_address is None:
            raise ValidationError({"delivery_address": ["Delivery address is required"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        user_id,
        restaurant_id,
        restaurant_name,
        items,
        delivery_address,
        contact_phone,
        payment_method=None,
        special_instructions=None,
    ):
        """Create an order from a snapshot of cart lines.

        Args:
            items: Cart lines (anything with menu_item_id, name, price,
                   quantity, image and notes attributes). They are copied.
            delivery_address: Dict with street, city, state, zip_code and
                              optional latitude/longitude.
        """
        if not items:
            raise EmptyCartError({"cart": ["Cart is empty"]})
        if not contact_phone:
            raise ValidationError({"contact_phone": ["Contact phone is required"]})

        snapshot = [
            OrderItem(
                menu_item_id=item.menu_item_id,
                name=item.name,
                price=item.price,
                quantity=item.quantity,
                image=item.image,
                notes=item.notes,
            )
            for item in items
        ]
        now = datetime.now(UTC)

        order = cls(
            order_number=order_number,
            user_id=user_id,
            restaurant_id=restaurant_id,
            restaurant_name=restaurant_name,
            items=snapshot,
            status=OrderStatus.PENDING.value,
            total_amount=calculate_total(snapshot),
            delivery_address=DeliveryAddress.from_dict(delivery_address),
            contact_phone=contact_phone,
            payment_method=payment_method or PaymentMethod.CASH_ON_DELIVERY.value,
            payment_status=PaymentStatus.PENDING.value,
            special_instructions=special_instructions or "",
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(order.user_id),
                restaurant_id=str(order.restaurant_id),
                total_amount=order.total_amount,
                status=order.status,
                item_count=len(order.items),
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.current_status in TERMINAL_STATES

    def _identity(self) -> dict:
        return {
            "order_id": str(self.id),
            "order_number": self.order_number,
            "user_id": str(self.user_id),
            "restaurant_id": str(self.restaurant_id),
        }

    def _append_note(self, line):
        existing = self.special_instructions or ""
        self.special_instructions = f"{existing}\n{line}" if existing else line

    def _touch(self):
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def update_status(self, new_status, estimated_delivery_time=None):
        """Move the order to ``new_status``, optionally setting an ETA.

        Re-applying the current status is allowed so an ETA can be revised.
        """
        target = parse_status(new_status)
        current = self.current_status

        if current in TERMINAL_STATES:
            raise InvalidStateError({"status": [f"Cannot change the status of a {current.value} order"]})
        if (
            target != OrderStatus.CANCELLED
            and FULFILLMENT_SEQUENCE.index(target) < FULFILLMENT_SEQUENCE.index(current)
        ):
            raise InvalidStateError({"status": [f"Cannot move order from {current.value} back to {target.value}"]})

        self.status = target.value
        if estimated_delivery_time:
            self.estimated_delivery_time = estimated_delivery_time
        self._touch()

        self.raise_(
            OrderStatusUpdated(
                **self._identity(),
                status=self.status,
                previous_status=current.value,
                estimated_delivery_time=self.estimated_delivery_time,
            )
        )

    def cancel(self, cancelled_by, reason=None):
        """Cancel the order and record why in the audit trail.

        Returns False when the order was already cancelled, in which case
        nothing changes.
        """
        current = self.current_status
        if current == OrderStatus.DELIVERED:
            raise InvalidStateError({"status": ["Cannot cancel an order that has been delivered"]})
        if current == OrderStatus.CANCELLED:
            return False

        reason = reason or "No reason provided"
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        if cancelled_by == CancellationActor.SYSTEM.value:
            self._append_note(f"[SYSTEM] {now.isoformat()} - Order cancelled: {reason}")
        else:
            self._append_note(f"[CANCELLED] {now.isoformat()} - {reason}")
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                **self._identity(),
                reason=reason,
                cancelled_by=cancelled_by,
                cancelled_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------
    def update_details(self, delivery_address=None, contact_phone=None, special_instructions=None):
        """Change delivery address, phone or instructions while still pending."""
        if self.current_status != OrderStatus.PENDING:
            raise InvalidStateError({"status": ["Only pending orders can be updated"]})

        if delivery_address is not None:
            self.delivery_address = DeliveryAddress.from_dict(delivery_address)
        if contact_phone:
            self.contact_phone = contact_phone
        if special_instructions is not None:
            self.special_instructions = special_instructions
        self._touch()

        self.raise_(OrderDetailsUpdated(**self._identity()))

    def assign_delivery(self, delivery_id, delivery_person_id=None, delivery_person_name=None):
        """Attach the identifiers produced by the delivery service."""
        if not delivery_id:
            raise ValidationError({"delivery_id": ["Delivery ID is required"]})

        self.delivery_id = delivery_id
        if delivery_person_id:
            self.delivery_person_id = delivery_person_id
        if delivery_person_name:
            self.delivery_person_name = delivery_person_name
        self._touch()

        self.raise_(
            OrderDeliveryAssigned(
                **self._identity(),
                delivery_id=str(delivery_id),
                delivery_person_id=str(delivery_person_id) if delivery_person_id else None,
                delivery_person_name=delivery_person_name,
            )
        )

    def record_payment_outcome(self, payment_status):
        try:
            outcome = PaymentStatus(payment_status)
        except ValueError:
            raise ValidationError({"payment_status": [f"Unknown payment status: {payment_status}"]}) from None

        self.payment_status = outcome.value
        self._touch()

        self.raise_(OrderPaymentUpdated(**self._identity(), payment_status=outcome.value))

    # -------------------------------------------------------------------
    # Compensations for facts owned by other services
    # -------------------------------------------------------------------
    def anonymize(self):
        """Redact the personal data of a deleted account."""
        self.contact_phone = REDACTED
        self.delivery_address = DeliveryAddress.redacted()
        self.special_instructions = "User account deleted"
        self._touch()

    def mark_restaurant_deleted(self):
        self.restaurant_name = DELETED_RESTAURANT
        self._append_note("[SYSTEM] Restaurant has been deleted from the system")
        self._touch()
