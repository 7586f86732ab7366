"""Tests for schema management against the configured providers."""

from food_ordering.utils.db import drop_db, setup_db
from protean import current_domain


def test_memory_provider_needs_no_schema():
    assert setup_db(current_domain) == []
    assert drop_db(current_domain) == []
