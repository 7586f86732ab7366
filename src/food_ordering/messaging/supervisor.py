"""Connection supervision with capped exponential backoff.

The supervisor owns the decision of when to (re)open the broker connection.
Long-running consumers call ``connect()``, which blocks and retries until the
broker answers; request-path publishers call ``ensure_open()``, which makes
at most one attempt and never waits, honouring the same backoff schedule.
"""

import threading
import time
from datetime import UTC, datetime

import structlog

from food_ordering.exceptions import InfrastructureError
from food_ordering.messaging.port import BrokerConnection

logger = structlog.get_logger(__name__)


class ConnectionSupervisor:
    def __init__(
        self,
        connection: BrokerConnection,
        on_connect=None,
        initial_delay: float = 1.0,
        multiplier: float = 2.0,
        max_delay: float = 30.0,
        max_attempts: int | None = None,
        sleep=time.sleep,
        clock=time.monotonic,
    ) -> None:
        self.connection = connection
        self.on_connect = on_connect
        self.initial_delay = initial_delay
        self.multiplier = multiplier
        self.max_delay = max_delay
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._clock = clock
        self._lock = threading.RLock()

        self.consecutive_failures = 0
        self.last_error: str | None = None
        self.last_connected_at: datetime | None = None
        self._next_attempt_at = 0.0

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the ``attempt``-th consecutive failure."""
        return min(self.initial_delay * self.multiplier ** max(attempt - 1, 0), self.max_delay)

    def connect(self, stop_event: threading.Event | None = None) -> bool:
        """Open the connection, retrying with backoff.

        Returns False if ``stop_event`` is set while waiting. Raises
        ``InfrastructureError`` once ``max_attempts`` consecutive attempts fail.
        """
        attempt = 0
        while True:
            if stop_event is not None and stop_event.is_set():
                return False
            if self._attempt():
                return True

            attempt += 1
            if self.max_attempts is not None and attempt >= self.max_attempts:
                raise InfrastructureError(
                    {"broker": [f"Broker unavailable after {attempt} attempts: {self.last_error}"]}
                )

            delay = self.delay_for(attempt)
            logger.warning("Broker connection failed, retrying", attempt=attempt, delay=delay, error=self.last_error)
            if stop_event is not None:
                if stop_event.wait(delay):
                    return False
            else:
                self._sleep(delay)

    def ensure_open(self) -> bool:
        """Make sure the connection is open without blocking.

        Makes one attempt if the backoff window since the last failure has
        passed; returns whether the connection is usable.
        """
        if self.connection.is_open:
            return True
        if self._clock() < self._next_attempt_at:
            return False
        return self._attempt()

    def mark_lost(self, error: Exception) -> None:
        """Record that an operation on an open connection failed."""
        with self._lock:
            self.last_error = str(error)
            if self.connection.is_open and not self.connection.ping():
                self.connection.close()

    def close(self) -> None:
        with self._lock:
            self.connection.close()

    def health(self) -> dict:
        connected = self.connection.is_open and self.connection.ping()
        return {
            "status": "up" if connected else "down",
            "broker": type(self.connection).__name__,
            "connected": connected,
            "consecutive_failures": self.consecutive_failures,
            "last_error": self.last_error,
            "last_connected_at": self.last_connected_at.isoformat() if self.last_connected_at else None,
        }

    def _attempt(self) -> bool:
        with self._lock:
            if self.connection.is_open:
                return True
            try:
                self.connection.open()
                if self.on_connect is not None:
                    self.on_connect(self.connection)
            except InfrastructureError as exc:
                self.connection.close()
                self.consecutive_failures += 1
                self.last_error = exc.message
                self._next_attempt_at = self._clock() + self.delay_for(self.consecutive_failures)
                return False

            if self.consecutive_failures:
                logger.info("Broker connection restored", after_failures=self.consecutive_failures)
            self.consecutive_failures = 0
            self.last_error = None
            self.last_connected_at = datetime.now(UTC)
            self._next_attempt_at = 0.0
            return True
