"""Repository for the Order aggregate."""

from math import ceil

from food_ordering.domain import food_ordering
from food_ordering.order.order import Order, OrderStatus
from food_ordering.utils.query import fetch_all


class OrderPage:
    """One page of orders, newest first, with pagination metadata."""

    def __init__(self, orders, total, page, limit):
        self.orders = orders
        self.total = total
        self.page = page
        self.limit = limit

    @property
    def pages(self) -> int:
        return ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict:
        return {"total": self.total, "page": self.page, "limit": self.limit, "pages": self.pages}


@food_ordering.repository(part_of=Order)
class OrderRepository:
    """Order lookups by owner, restaurant, status and order number."""

    def search(self, page=1, limit=10, **filters) -> OrderPage:
        """Page through orders matching the non-empty ``filters``."""
        criteria = {key: str(value) for key, value in filters.items() if value}
        page = max(int(page), 1)
        limit = max(int(limit), 1)

        query = self._dao.query
        if criteria:
            query = query.filter(**criteria)
        results = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
        return OrderPage(results.items, results.total, page, limit)

    def for_user(self, user_id, status=None, page=1, limit=10) -> OrderPage:
        return self.search(page=page, limit=limit, user_id=user_id, status=status)

    def for_restaurant(self, restaurant_id, status=None, page=1, limit=10) -> OrderPage:
        return self.search(page=page, limit=limit, restaurant_id=restaurant_id, status=status)

    def all_for_user(self, user_id) -> list[Order]:
        return fetch_all(self._dao.query.filter(user_id=str(user_id)))

    def all_for_restaurant(self, restaurant_id) -> list[Order]:
        return fetch_all(self._dao.query.filter(restaurant_id=str(restaurant_id)))

    def open_for_restaurant(self, restaurant_id, states) -> list[Order]:
        wanted = {state.value if isinstance(state, OrderStatus) else state for state in states}
        return [order for order in self.all_for_restaurant(restaurant_id) if order.status in wanted]

    def by_number(self, order_number) -> Order | None:
        orders = self._dao.query.filter(order_number=order_number).all().items
        return orders[0] if orders else None
