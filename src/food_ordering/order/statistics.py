"""Per-restaurant order statistics.

Counts are derived from the restaurant's orders on every request; nothing is
stored. "Today" is the current UTC calendar day, matched against each
order's ``created_at``.

Keys of the returned mapping:
    ``<status>`` and ``<status>_today`` for each of the seven statuses,
    ``total``, ``total_today``, ``active`` (not delivered or cancelled),
    ``total_revenue`` and ``today_revenue`` (delivered orders only).
"""

from datetime import UTC, datetime

from protean.utils.globals import current_domain

from food_ordering.order.order import TERMINAL_STATES, Order, OrderStatus


def _created_on(order, day) -> bool:
    created_at = order.created_at
    if created_at is None:
        return False
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return created_at.astimezone(UTC).date() == day


def restaurant_order_stats(orders, now: datetime | None = None) -> dict:
    """Aggregate counts and revenue over ``orders``."""
    today = (now or datetime.now(UTC)).astimezone(UTC).date()
    terminal = {state.value for state in TERMINAL_STATES}

    stats = {}
    for status in OrderStatus:
        stats[status.value] = 0
        stats[f"{status.value}_today"] = 0
    stats.update(total=0, total_today=0, active=0, total_revenue=0.0, today_revenue=0.0)

    for order in orders:
        is_today = _created_on(order, today)
        delivered = order.status == OrderStatus.DELIVERED.value

        stats[order.status] += 1
        stats["total"] += 1
        if order.status not in terminal:
            stats["active"] += 1
        if delivered:
            stats["total_revenue"] += order.total_amount or 0.0

        if is_today:
            stats[f"{order.status}_today"] += 1
            stats["total_today"] += 1
            if delivered:
                stats["today_revenue"] += order.total_amount or 0.0

    stats["total_revenue"] = round(stats["total_revenue"], 2)
    stats["today_revenue"] = round(stats["today_revenue"], 2)
    return stats


def stats_for_restaurant(restaurant_id, now: datetime | None = None) -> dict:
    orders = current_domain.repository_for(Order).all_for_restaurant(restaurant_id)
    return restaurant_order_stats(orders, now=now)
