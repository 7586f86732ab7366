"""Integration tests for the order endpoints."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from food_ordering.api import cart_router, order_router, register_error_handlers

CUSTOMER = {"X-User-Id": "user-001", "X-User-Role": "customer"}
OTHER_CUSTOMER = {"X-User-Id": "user-002", "X-User-Role": "customer"}
RESTAURANT_ADMIN = {"X-User-Id": "admin-001", "X-User-Role": "restaurant_admin", "X-Restaurant-Id": "rest-001"}
SYSTEM_ADMIN = {"X-User-Id": "root-001", "X-User-Role": "system_admin"}
DELIVERY_ADMIN = {"X-User-Id": "dispatch-001", "X-User-Role": "delivery_admin"}

ADDRESS = {"street": "1 Galle Road", "city": "Colombo", "state": "Western", "zipCode": "00300"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(cart_router, prefix="/api")
    app.include_router(order_router, prefix="/api")
    register_error_handlers(app)
    return TestClient(app)


def _fill_cart(client, headers=CUSTOMER, restaurant_id="rest-001"):
    for menu_item_id, price, quantity in [("menu-001", 7.0, 2), ("menu-002", 2.5, 1)]:
        client.post(
            "/api/cart/items",
            json={
                "menuItemId": menu_item_id,
                "name": f"Dish {menu_item_id}",
                "price": price,
                "quantity": quantity,
                "restaurantId": restaurant_id,
                "restaurantName": "Hopper Hut",
            },
            headers=headers,
        )


def _place(client, headers=CUSTOMER, restaurant_id="rest-001"):
    _fill_cart(client, headers=headers, restaurant_id=restaurant_id)
    response = client.post(
        "/api/orders",
        json={"deliveryAddress": ADDRESS, "contactPhone": "0771234567", "specialInstructions": "Ring twice"},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


class TestPlaceOrder:
    def test_place_order(self, client):
        order = _place(client)

        assert order["status"] == "pending"
        assert order["payment_status"] == "pending"
        assert order["payment_method"] == "cash_on_delivery"
        assert order["total_amount"] == 16.5
        assert order["order_number"].startswith("ORD-")
        assert order["delivery_address"]["zip_code"] == "00300"
        assert len(order["items"]) == 2

    def test_payment_method_defaults_when_omitted(self, client):
        _fill_cart(client)

        response = client.post(
            "/api/orders",
            json={"deliveryAddress": ADDRESS, "contactPhone": "0771234567"},
            headers=CUSTOMER,
        )

        assert response.status_code == 201
        assert response.json()["payment_method"] == "cash_on_delivery"

    def test_payment_method_chosen(self, client):
        _fill_cart(client)

        response = client.post(
            "/api/orders",
            json={"deliveryAddress": ADDRESS, "contactPhone": "0771234567", "paymentMethod": "wallet"},
            headers=CUSTOMER,
        )

        assert response.json()["payment_method"] == "wallet"

    def test_cart_is_emptied(self, client):
        _place(client)

        cart = client.get("/api/cart", headers=CUSTOMER).json()
        assert cart["items"] == []

    def test_empty_cart(self, client):
        response = client.post(
            "/api/orders",
            json={"deliveryAddress": ADDRESS, "contactPhone": "0771234567"},
            headers=CUSTOMER,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Cart is empty"

    def test_incomplete_address(self, client):
        _fill_cart(client)

        response = client.post(
            "/api/orders",
            json={"deliveryAddress": {"street": "1 Galle Road"}, "contactPhone": "0771234567"},
            headers=CUSTOMER,
        )

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert client.get("/api/cart", headers=CUSTOMER).json()["items"] != []

    def test_missing_contact_phone(self, client):
        _fill_cart(client)

        response = client.post("/api/orders", json={"deliveryAddress": ADDRESS}, headers=CUSTOMER)

        assert response.status_code == 400


class TestReadOrders:
    def test_owner_reads_order(self, client):
        order = _place(client)

        response = client.get(f"/api/orders/{order['id']}", headers=CUSTOMER)

        assert response.status_code == 200
        assert response.json()["order_number"] == order["order_number"]

    def test_other_customer_forbidden(self, client):
        order = _place(client)

        response = client.get(f"/api/orders/{order['id']}", headers=OTHER_CUSTOMER)

        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to view this order"

    def test_staff_reads_any_order(self, client):
        order = _place(client)
        assert client.get(f"/api/orders/{order['id']}", headers=RESTAURANT_ADMIN).status_code == 200

    def test_unknown_order(self, client):
        assert client.get("/api/orders/missing", headers=SYSTEM_ADMIN).status_code == 404

    def test_my_orders_paginated_newest_first(self, client):
        placed = [_place(client)["id"] for _ in range(3)]
        _place(client, headers=OTHER_CUSTOMER)

        response = client.get("/api/orders/mine?page=1&limit=2", headers=CUSTOMER)

        body = response.json()
        assert body["pagination"] == {"total": 3, "page": 1, "limit": 2, "pages": 2}
        assert [o["id"] for o in body["orders"]] == [placed[2], placed[1]]

    def test_my_orders_filtered_by_status(self, client):
        first = _place(client)
        _place(client)
        client.put(f"/api/orders/{first['id']}/cancel", headers=CUSTOMER)

        body = client.get("/api/orders/mine?status=cancelled", headers=CUSTOMER).json()

        assert [o["id"] for o in body["orders"]] == [first["id"]]

    def test_bad_pagination(self, client):
        assert client.get("/api/orders/mine?page=0", headers=CUSTOMER).status_code == 400

    def test_unknown_status_filter(self, client):
        assert client.get("/api/orders/mine?status=teleported", headers=CUSTOMER).status_code == 400

    def test_restaurant_orders(self, client):
        _place(client)
        _place(client, headers=OTHER_CUSTOMER, restaurant_id="rest-002")

        body = client.get("/api/orders/restaurant/rest-001", headers=RESTAURANT_ADMIN).json()

        assert body["pagination"]["total"] == 1
        assert body["orders"][0]["restaurant_id"] == "rest-001"

    def test_restaurant_orders_forbidden_for_customers(self, client):
        assert client.get("/api/orders/restaurant/rest-001", headers=CUSTOMER).status_code == 403

    def test_all_orders_system_admin_only(self, client):
        _place(client)
        _place(client, headers=OTHER_CUSTOMER, restaurant_id="rest-002")

        assert client.get("/api/orders", headers=RESTAURANT_ADMIN).status_code == 403

        body = client.get("/api/orders?restaurant_id=rest-002", headers=SYSTEM_ADMIN).json()
        assert body["pagination"]["total"] == 1

    def test_restaurant_stats(self, client):
        delivered = _place(client)
        _place(client)
        client.put(f"/api/orders/{delivered['id']}/status", json={"status": "delivered"}, headers=RESTAURANT_ADMIN)

        response = client.get("/api/orders/restaurant/rest-001/stats", headers=RESTAURANT_ADMIN)

        assert response.status_code == 200
        body = response.json()
        assert body["restaurant_id"] == "rest-001"
        assert body["stats"]["total"] == 2
        assert body["stats"]["delivered"] == 1
        assert body["stats"]["pending"] == 1
        assert body["stats"]["total_revenue"] == 16.5


class TestLifecycle:
    def test_status_update(self, client):
        order = _place(client)

        response = client.put(
            f"/api/orders/{order['id']}/status",
            json={"status": "confirmed", "estimatedDeliveryTime": "2026-01-01T12:30:00Z"},
            headers=RESTAURANT_ADMIN,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert response.json()["estimated_delivery_time"].startswith("2026-01-01T12:30")

    def test_customer_cannot_update_status(self, client):
        order = _place(client)

        response = client.put(f"/api/orders/{order['id']}/status", json={"status": "confirmed"}, headers=CUSTOMER)

        assert response.status_code == 403

    def test_backward_status_conflicts(self, client):
        order = _place(client)
        client.put(f"/api/orders/{order['id']}/status", json={"status": "preparing"}, headers=RESTAURANT_ADMIN)

        response = client.put(f"/api/orders/{order['id']}/status", json={"status": "pending"}, headers=RESTAURANT_ADMIN)

        assert response.status_code == 409

    def test_customer_cancels_without_body(self, client):
        order = _place(client)

        response = client.put(f"/api/orders/{order['id']}/cancel", headers=CUSTOMER)

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_cancel_with_reason(self, client):
        order = _place(client)

        response = client.put(
            f"/api/orders/{order['id']}/cancel", json={"reason": "Ordered by mistake"}, headers=CUSTOMER
        )

        assert response.json()["status"] == "cancelled"

    def test_cancel_delivered_conflicts(self, client):
        order = _place(client)
        client.put(f"/api/orders/{order['id']}/status", json={"status": "delivered"}, headers=RESTAURANT_ADMIN)

        response = client.put(f"/api/orders/{order['id']}/cancel", headers=CUSTOMER)

        assert response.status_code == 409
        assert response.json()["message"] == "Cannot cancel an order that has been delivered"

    def test_cancel_someone_elses_order(self, client):
        order = _place(client)
        assert client.put(f"/api/orders/{order['id']}/cancel", headers=OTHER_CUSTOMER).status_code == 403

    def test_update_details_while_pending(self, client):
        order = _place(client)

        response = client.put(
            f"/api/orders/{order['id']}/details",
            json={"contactPhone": "0712345678", "deliveryAddress": {**ADDRESS, "street": "9 Marine Drive"}},
            headers=CUSTOMER,
        )

        assert response.status_code == 200
        assert response.json()["contact_phone"] == "0712345678"
        assert response.json()["delivery_address"]["street"] == "9 Marine Drive"

    def test_update_details_after_confirmation_conflicts(self, client):
        order = _place(client)
        client.put(f"/api/orders/{order['id']}/status", json={"status": "confirmed"}, headers=RESTAURANT_ADMIN)

        response = client.put(f"/api/orders/{order['id']}/details", json={"contactPhone": "0712345678"}, headers=CUSTOMER)

        assert response.status_code == 409

    def test_assign_delivery(self, client):
        order = _place(client)

        response = client.put(
            f"/api/orders/{order['id']}/delivery",
            json={"deliveryId": "del-001", "deliveryPersonId": "rider-7", "deliveryPersonName": "Nimal"},
            headers=DELIVERY_ADMIN,
        )

        assert response.status_code == 200
        assert response.json()["delivery_id"] == "del-001"
        assert response.json()["delivery_person_name"] == "Nimal"

    def test_assign_delivery_requires_delivery_id(self, client):
        order = _place(client)

        response = client.put(f"/api/orders/{order['id']}/delivery", json={}, headers=DELIVERY_ADMIN)

        assert response.status_code == 400
