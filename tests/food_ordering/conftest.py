import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def food_ordering_bed():
    from food_ordering.domain import food_ordering

    bed = DomainFixture(food_ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(scope="session", autouse=True)
def _schema(food_ordering_bed):
    """Create tables on SQL providers when running with --env production."""
    from food_ordering.domain import food_ordering
    from food_ordering.utils.db import drop_db, setup_db

    setup_db(food_ordering)
    yield
    drop_db(food_ordering)


@pytest.fixture(autouse=True)
def _ctx(food_ordering_bed):
    from food_ordering.messaging.publisher import reset_publisher
    from protean import current_domain

    with food_ordering_bed.domain_context():
        yield

        # Clear stores, brokers and the event store after every test
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        for _, broker in current_domain.brokers.items():
            broker._data_reset()
        current_domain.event_store.store._data_reset()

    reset_publisher()


@pytest.fixture()
def broker():
    """An open in-memory broker with the order exchange declared."""
    from food_ordering.messaging.memory_adapter import MemoryBroker

    memory_broker = MemoryBroker()
    memory_broker.open()
    memory_broker.declare_exchange("order_events")
    memory_broker.declare_exchange("order_events.dead_letter")
    yield memory_broker
    memory_broker.close()


@pytest.fixture()
def published(broker):
    """Install a publisher on ``broker`` and return its publish log for the order exchange."""
    from food_ordering.messaging.publisher import EventPublisher, set_publisher

    set_publisher(EventPublisher(broker, "order_events"))

    def _published(routing_key=None):
        return broker.published_to("order_events", routing_key)

    return _published
