"""Tests for the messaging runtime: topology, publisher wiring and health."""

import threading

import pytest
from food_ordering.exceptions import InfrastructureError
from food_ordering.messaging.memory_adapter import MemoryBroker
from food_ordering.messaging.publisher import DisconnectedPublisher, get_publisher
from food_ordering.messaging.redis_adapter import RedisStreamsBroker
from food_ordering.messaging.runtime import Messaging, build_messaging, connection_for
from food_ordering.messaging.settings import MessagingSettings
from food_ordering.order.order import Order
from protean import current_domain


def _messaging(broker=None, **settings):
    return Messaging(
        current_domain,
        MessagingSettings.from_mapping(settings),
        connection=broker or MemoryBroker(),
        sleep=lambda _: None,
    )


class TestConnectionFactory:
    def test_memory_url(self):
        assert isinstance(connection_for(MessagingSettings.from_mapping({"broker_url": "memory://"})), MemoryBroker)

    def test_redis_url_with_adapter_options(self):
        settings = MessagingSettings.from_mapping(
            {"broker_url": "redis://localhost:6379/2", "redis": {"stream_prefix": "fo:", "max_stream_length": 500}}
        )

        connection = connection_for(settings)

        assert isinstance(connection, RedisStreamsBroker)
        assert connection.stream_prefix == "fo:"
        assert connection.max_stream_length == 500
        assert not connection.is_open

    def test_build_from_domain_config(self):
        messaging = build_messaging(current_domain)
        assert messaging.settings.queue == "order_queue"
        assert messaging.settings.order_exchange == "order_events"


class TestOpenAndClose:
    def test_publishing_process_declares_exchanges_only(self):
        broker = MemoryBroker()
        messaging = _messaging(broker)

        assert messaging.open() is True

        assert get_publisher() is messaging.publisher
        broker.publish("payment_events", "payment.succeeded", {"orderId": "o1"})
        assert broker.pending("order_queue") == 0

    def test_consuming_process_binds_inbound_exchanges(self):
        broker = MemoryBroker()
        messaging = _messaging(broker)

        messaging.open(consume=True)

        for exchange, key in [
            ("account_events", "user.deleted"),
            ("restaurant_events", "restaurant.deleted"),
            ("payment_events", "payment.failed"),
        ]:
            broker.publish(exchange, key, {})
        broker.publish("order_events", "order.created", {})

        assert broker.pending("order_queue") == 3

    def test_close_uninstalls_publisher(self):
        broker = MemoryBroker()
        messaging = _messaging(broker)
        messaging.open()

        messaging.close()

        assert not broker.is_open
        assert isinstance(get_publisher(), DisconnectedPublisher)

    def test_open_without_broker_keeps_running(self):
        broker = MemoryBroker()
        broker.configure(available=False)
        messaging = _messaging(broker)

        assert messaging.open() is False
        assert get_publisher() is messaging.publisher
        assert messaging.publisher.publish("order.created", {"orderId": "o1"}) is False

    def test_open_and_wait_gives_up_after_limit(self):
        broker = MemoryBroker()
        broker.configure(available=False)
        messaging = _messaging(broker, reconnect_max_attempts=2)

        with pytest.raises(InfrastructureError):
            messaging.open(wait=True)
        assert broker.open_attempts == 2


class TestHealth:
    def test_up(self):
        messaging = _messaging()
        messaging.open()

        health = messaging.health()

        assert health["status"] == "up"
        assert health["broker"] == "MemoryBroker"

    def test_down_after_outage(self):
        broker = MemoryBroker()
        messaging = _messaging(broker)
        messaging.open()

        broker.configure(available=False)

        assert messaging.health()["status"] == "down"


class TestReactorLoop:
    def _order(self):
        order = Order.place(
            order_number="ORD-260101-LOOP01",
            user_id="user-001",
            restaurant_id="rest-001",
            restaurant_name="Hopper Hut",
            items=[type("Line", (), {"menu_item_id": "m1", "name": "Kottu", "price": 5.0, "quantity": 1,
                                     "image": None, "notes": None})()],
            delivery_address={"street": "1 St", "city": "C", "state": "S", "zip_code": "00000"},
            contact_phone="0771234567",
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)

    def test_run_processes_until_stopped(self):
        broker = MemoryBroker()
        messaging = _messaging(broker, poll_timeout=0.01)
        messaging.open(consume=True)
        order_id = self._order()
        stop = threading.Event()

        def stop_after_ack(delivery, _ack=broker.ack):
            _ack(delivery)
            stop.set()

        broker.ack = stop_after_ack
        broker.publish("payment_events", "payment.succeeded", {"orderId": order_id})

        messaging.reactor.run(stop)

        assert current_domain.repository_for(Order).get(order_id).payment_status == "completed"
        assert broker.pending("order_queue") == 0

    def test_run_reconnects_dropped_connection(self):
        broker = MemoryBroker()
        messaging = _messaging(broker, poll_timeout=0.01)
        messaging.open(consume=True)
        broker.configure(available=False)
        broker.configure(available=True)
        stop = threading.Event()

        def stop_after_fetch(queue, timeout=0.0, _fetch=broker.fetch):
            stop.set()
            return _fetch(queue, timeout=timeout)

        broker.fetch = stop_after_fetch

        messaging.reactor.run(stop)

        assert broker.is_open
        assert broker.open_attempts == 2
        assert messaging.supervisor.consecutive_failures == 0
