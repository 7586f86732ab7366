"""Tests for Order detail edits, delivery linkage, payment outcome and compensations."""

import pytest
from food_ordering.exceptions import InvalidStateError
from food_ordering.order.events import OrderDeliveryAssigned, OrderDetailsUpdated, OrderPaymentUpdated
from food_ordering.order.order import DELETED_RESTAURANT, REDACTED, Order
from protean.exceptions import ValidationError


class _Line:
    menu_item_id = "menu-001"
    name = "Biryani"
    price = 11.0
    quantity = 1
    image = None
    notes = None


def _make_order(**overrides):
    kwargs = {
        "order_number": "ORD-260101-EDIT01",
        "user_id": "user-001",
        "restaurant_id": "rest-001",
        "restaurant_name": "Spice House",
        "items": [_Line()],
        "delivery_address": {"street": "1 St", "city": "C", "state": "S", "zip_code": "00000", "latitude": 6.9},
        "contact_phone": "0771234567",
        "special_instructions": "Leave at door",
    }
    kwargs.update(overrides)
    order = Order.place(**kwargs)
    order._events.clear()
    return order


class TestUpdateDetails:
    def test_update_phone_and_instructions(self):
        order = _make_order()
        order.update_details(contact_phone="0719999999", special_instructions="Call on arrival")

        assert order.contact_phone == "0719999999"
        assert order.special_instructions == "Call on arrival"
        assert isinstance(order._events[-1], OrderDetailsUpdated)

    def test_replace_address(self):
        order = _make_order()
        order.update_details(delivery_address={"street": "9 Lane", "city": "Kandy", "state": "Central", "zip_code": "20000"})
        assert order.delivery_address.city == "Kandy"
        assert order.delivery_address.latitude is None

    def test_incomplete_replacement_address_rejected(self):
        order = _make_order()
        with pytest.raises(ValidationError):
            order.update_details(delivery_address={"street": "9 Lane", "city": "Kandy"})
        assert order.delivery_address.street == "1 St"

    def test_omitted_fields_unchanged(self):
        order = _make_order()
        order.update_details(contact_phone="0710000000")
        assert order.special_instructions == "Leave at door"
        assert order.delivery_address.street == "1 St"

    @pytest.mark.parametrize("status", ["confirmed", "preparing", "delivered"])
    def test_only_pending_orders_editable(self, status):
        order = _make_order()
        order.update_status(status)
        with pytest.raises(InvalidStateError) as exc:
            order.update_details(contact_phone="0710000000")
        assert exc.value.messages == {"status": ["Only pending orders can be updated"]}

    def test_cancelled_order_not_editable(self):
        order = _make_order()
        order.cancel(cancelled_by="customer")
        with pytest.raises(InvalidStateError):
            order.update_details(special_instructions="Hurry")


class TestAssignDelivery:
    def test_assign(self):
        order = _make_order()
        order.assign_delivery("del-001", delivery_person_id="rider-9", delivery_person_name="Nimal")

        assert str(order.delivery_id) == "del-001"
        assert str(order.delivery_person_id) == "rider-9"
        assert order.delivery_person_name == "Nimal"

        event = order._events[-1]
        assert isinstance(event, OrderDeliveryAssigned)
        assert event.delivery_id == "del-001"
        assert event.delivery_person_name == "Nimal"

    def test_delivery_id_required(self):
        order = _make_order()
        with pytest.raises(ValidationError) as exc:
            order.assign_delivery(None)
        assert exc.value.messages == {"delivery_id": ["Delivery ID is required"]}


class TestPaymentOutcome:
    @pytest.mark.parametrize("outcome", ["completed", "failed", "refunded"])
    def test_record(self, outcome):
        order = _make_order()
        order.record_payment_outcome(outcome)

        assert order.payment_status == outcome
        event = order._events[-1]
        assert isinstance(event, OrderPaymentUpdated)
        assert event.payment_status == outcome

    def test_unknown_outcome_rejected(self):
        order = _make_order()
        with pytest.raises(ValidationError):
            order.record_payment_outcome("maybe")


class TestCompensations:
    def test_anonymize_redacts_personal_data(self):
        order = _make_order()
        order.anonymize()

        assert order.contact_phone == REDACTED
        address = order.delivery_address
        assert (address.street, address.city, address.state, address.zip_code) == (REDACTED,) * 4
        assert address.latitude is None
        assert order.special_instructions == "User account deleted"

    def test_anonymize_keeps_order_facts(self):
        order = _make_order()
        order.anonymize()
        assert order.total_amount == 11.0
        assert order.status == "pending"
        assert order._events == []

    def test_mark_restaurant_deleted(self):
        order = _make_order()
        order.mark_restaurant_deleted()

        assert order.restaurant_name == DELETED_RESTAURANT
        assert order.special_instructions == (
            "Leave at door\n[SYSTEM] Restaurant has been deleted from the system"
        )
