"""Tests for topic pattern matching and routing-key normalization."""

import pytest
from food_ordering.messaging.topics import normalize_routing_key, topic_matches


@pytest.mark.parametrize(
    "pattern,routing_key,expected",
    [
        ("#", "account.deleted", True),
        ("#", "a", True),
        ("account.*", "account.deleted", True),
        ("account.*", "account.profile.updated", False),
        ("account.#", "account.profile.updated", True),
        ("account.#", "account", True),
        ("*.deleted", "restaurant.deleted", True),
        ("*.deleted", "deleted", False),
        ("order.created", "order.created", True),
        ("order.created", "order.cancelled", False),
        ("#.updated", "cart.updated", True),
        ("a.#.z", "a.b.c.z", True),
        ("a.#.z", "a.z", True),
        ("a.*.z", "a.z", False),
    ],
)
def test_topic_matches(pattern, routing_key, expected):
    assert topic_matches(pattern, routing_key) is expected


def test_legacy_user_keys_map_to_account():
    assert normalize_routing_key("user.deleted") == "account.deleted"


def test_other_keys_unchanged():
    assert normalize_routing_key("payment.failed") == "payment.failed"
    assert normalize_routing_key("user") == "user"
