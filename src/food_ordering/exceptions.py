"""Errors raised by the food ordering domain beyond Protean's own.

Missing or malformed input raises ``protean.exceptions.ValidationError`` and
absent carts, lines, or orders raise ``protean.exceptions.ObjectNotFoundError``,
as everywhere else in the domain. The classes below cover the remaining
failure kinds and carry a ``messages`` dict shaped like Protean's.
"""

from protean.exceptions import ValidationError


class OrderingError(Exception):
    """Base for non-Protean ordering errors."""

    def __init__(self, messages: dict[str, list[str]]):
        self.messages = messages
        super().__init__(messages)

    @property
    def message(self) -> str:
        return "; ".join(msg for msgs in self.messages.values() for msg in msgs)


class Forbidden(OrderingError):
    """The principal's role or ownership does not permit the action."""


class InvalidStateError(OrderingError):
    """The order's current status does not permit the requested change."""


class InfrastructureError(OrderingError):
    """A store or the message broker is unavailable."""


class EmptyCartError(ValidationError):
    """An order was requested from a cart with no items."""
