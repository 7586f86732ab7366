"""Exchange names, routing keys and AMQP-style topic matching."""

# Outbound routing keys on the order exchange
CART_UPDATED = "cart.updated"
CART_CLEARED = "cart.cleared"
ORDER_CREATED = "order.created"
ORDER_STATUS_UPDATED = "order.status_updated"
ORDER_CANCELLED = "order.cancelled"
ORDER_DETAILS_UPDATED = "order.details_updated"
ORDER_DELIVERY_ASSIGNED = "order.delivery_assigned"
ORDER_PAYMENT_UPDATED = "order.payment_updated"

# Inbound routing keys
ACCOUNT_DELETED = "account.deleted"
RESTAURANT_STATUS_CHANGED = "restaurant.status_changed"
RESTAURANT_DELETED = "restaurant.deleted"
PAYMENT_SUCCEEDED = "payment.succeeded"
PAYMENT_FAILED = "payment.failed"

# The user service still publishes ``user.*`` keys
LEGACY_PREFIXES = {"user": "account"}

MATCH_ALL = "#"


def normalize_routing_key(routing_key: str) -> str:
    prefix, _, rest = routing_key.partition(".")
    if prefix in LEGACY_PREFIXES and rest:
        return f"{LEGACY_PREFIXES[prefix]}.{rest}"
    return routing_key


def topic_matches(pattern: str, routing_key: str) -> bool:
    """Match a routing key against a topic pattern.

    ``*`` matches exactly one dot-separated word, ``#`` matches zero or more.
    """
    return _match(pattern.split("."), routing_key.split(".") if routing_key else [])


def _match(pattern: list[str], words: list[str]) -> bool:
    if not pattern:
        return not words

    head, rest = pattern[0], pattern[1:]
    if head == "#":
        return any(_match(rest, words[i:]) for i in range(len(words) + 1))
    if not words:
        return False
    if head == "*" or head == words[0]:
        return _match(rest, words[1:])
    return False
