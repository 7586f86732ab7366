"""Messaging composition root.

One ``Messaging`` object per process owns the broker connection and wires the
supervisor, publisher and reactor to it. The HTTP app opens it for
publishing; the reactor runner opens it with ``consume=True`` as well.
"""

import structlog

from food_ordering.messaging.memory_adapter import MemoryBroker
from food_ordering.messaging.port import BrokerConnection
from food_ordering.messaging.publisher import EventPublisher, reset_publisher, set_publisher
from food_ordering.messaging.reactor import EventReactor
from food_ordering.messaging.redis_adapter import RedisStreamsBroker
from food_ordering.messaging.settings import MessagingSettings
from food_ordering.messaging.supervisor import ConnectionSupervisor
from food_ordering.messaging.topics import MATCH_ALL

logger = structlog.get_logger(__name__)


def connection_for(settings: MessagingSettings) -> BrokerConnection:
    if settings.broker_url.startswith("memory://"):
        return MemoryBroker()
    return RedisStreamsBroker(settings.broker_url, **settings.extra.get("redis", {}))


class Messaging:
    def __init__(
        self,
        domain,
        settings: MessagingSettings,
        connection: BrokerConnection | None = None,
        sleep=None,
    ) -> None:
        self.domain = domain
        self.settings = settings
        self.connection = connection or connection_for(settings)
        self.consuming = False

        timing = {"sleep": sleep} if sleep is not None else {}
        self.supervisor = ConnectionSupervisor(
            self.connection,
            on_connect=self.declare_topology,
            initial_delay=settings.reconnect_initial_delay,
            multiplier=settings.reconnect_multiplier,
            max_delay=settings.reconnect_max_delay,
            max_attempts=settings.reconnect_max_attempts,
            **timing,
        )
        self.publisher = EventPublisher(self.connection, settings.order_exchange, supervisor=self.supervisor)
        self.reactor = EventReactor(
            domain,
            self.connection,
            queue=settings.queue,
            dead_letter_exchange=settings.dead_letter_exchange,
            supervisor=self.supervisor,
            retry_attempts=settings.retry_attempts,
            retry_initial_delay=settings.retry_initial_delay,
            retry_max_delay=settings.retry_max_delay,
            poll_timeout=settings.poll_timeout,
            **timing,
        )

    def declare_topology(self, connection: BrokerConnection) -> None:
        connection.declare_exchange(self.settings.order_exchange)
        connection.declare_exchange(self.settings.dead_letter_exchange)
        if self.consuming:
            for exchange in self.settings.inbound_exchanges:
                connection.declare_exchange(exchange)
                connection.bind_queue(self.settings.queue, exchange, MATCH_ALL)

    def open(self, consume: bool = False, wait: bool = False) -> bool:
        """Install the publisher and connect.

        With ``wait`` the call blocks until the broker answers (or the
        configured attempt limit is hit); otherwise a failed first attempt is
        left to the supervisor's backoff and the process keeps running.
        """
        self.consuming = consume
        set_publisher(self.publisher)
        connected = self.supervisor.connect() if wait else self.supervisor.ensure_open()
        if connected:
            logger.info("Messaging opened", broker=type(self.connection).__name__, consume=consume)
        else:
            logger.warning("Broker unavailable at startup, will retry", error=self.supervisor.last_error)
        return connected

    def close(self) -> None:
        reset_publisher()
        self.supervisor.close()
        logger.info("Messaging closed")

    def health(self) -> dict:
        return self.supervisor.health()


def build_messaging(domain, **kwargs) -> Messaging:
    return Messaging(domain, MessagingSettings.from_domain(domain), **kwargs)
