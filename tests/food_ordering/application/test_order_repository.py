"""Application tests for OrderRepository and CartRepository queries."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from food_ordering.cart.cart import Cart
from food_ordering.order.order import Order, OrderStatus
from food_ordering.utils.query import fetch_all
from protean import current_domain


class _Line:
    menu_item_id = "menu-001"
    name = "Hopper"
    price = 1.0
    quantity = 1
    image = None
    notes = None


def _order(number, user_id="user-001", restaurant_id="rest-001", status=None, age_minutes=0):
    order = Order.place(
        order_number=f"ORD-260101-{number}",
        user_id=user_id,
        restaurant_id=restaurant_id,
        restaurant_name="Hopper Hut",
        items=[_Line()],
        delivery_address={"street": "1 St", "city": "C", "state": "S", "zip_code": "00000"},
        contact_phone="0771234567",
    )
    order.created_at = datetime.now(UTC) - timedelta(minutes=age_minutes)
    if status:
        order.update_status(status)
    current_domain.repository_for(Order).add(order)
    return order


def _repo():
    return current_domain.repository_for(Order)


class TestOrderSearch:
    def test_newest_first(self):
        _order("OLD001", age_minutes=30)
        _order("NEW001", age_minutes=1)
        _order("MID001", age_minutes=10)

        page = _repo().for_user("user-001")

        assert [o.order_number for o in page.orders] == ["ORD-260101-NEW001", "ORD-260101-MID001", "ORD-260101-OLD001"]

    def test_pagination_metadata(self):
        for i in range(7):
            _order(f"PAGE{i:02d}", age_minutes=i)

        page = _repo().for_user("user-001", page=2, limit=3)

        assert len(page.orders) == 3
        assert page.pagination() == {"total": 7, "page": 2, "limit": 3, "pages": 3}
        assert page.orders[0].order_number == "ORD-260101-PAGE03"

    def test_status_filter(self):
        _order("STAT01")
        _order("STAT02", status="confirmed")

        page = _repo().for_restaurant("rest-001", status="confirmed")

        assert [o.order_number for o in page.orders] == ["ORD-260101-STAT02"]

    def test_search_without_filters_returns_everything(self):
        _order("ALL001", user_id="user-001")
        _order("ALL002", user_id="user-002", restaurant_id="rest-002")
        assert _repo().search().total == 2

    def test_open_for_restaurant(self):
        _order("OPEN01")
        _order("OPEN02", status="confirmed")
        _order("OPEN03", status="ready")

        orders = _repo().open_for_restaurant("rest-001", {OrderStatus.PENDING, OrderStatus.CONFIRMED})

        assert sorted(o.order_number for o in orders) == ["ORD-260101-OPEN01", "ORD-260101-OPEN02"]

    def test_by_number(self):
        order = _order("NUMB01")
        assert str(_repo().by_number("ORD-260101-NUMB01").id) == str(order.id)
        assert _repo().by_number("ORD-260101-NOPE00") is None


class TestCartRepository:
    def test_for_user_missing(self):
        assert current_domain.repository_for(Cart).for_user("nobody") is None

    def test_remove(self):
        repo = current_domain.repository_for(Cart)
        repo.add(Cart.create(user_id="user-001"))
        repo.remove(repo.for_user("user-001"))
        assert repo.for_user("user-001") is None


class TestFetchAll:
    def test_collects_every_page_once(self):
        placed = [_order(f"FETCH{i}", restaurant_id="rest-009") for i in range(5)]
        query = current_domain.repository_for(Order)._dao.query.filter(restaurant_id="rest-009")

        records = fetch_all(query, page_size=2)

        assert [str(r.id) for r in records] == sorted(str(o.id) for o in placed)

    def test_pages_in_stable_order(self):
        queryset = MagicMock()
        ordered = queryset.order_by.return_value
        ordered.offset.return_value.limit.return_value.all.return_value.items = []

        assert fetch_all(queryset) == []
        queryset.order_by.assert_called_once_with("id")
        ordered.offset.assert_called_once_with(0)
        queryset.offset.assert_not_called()
