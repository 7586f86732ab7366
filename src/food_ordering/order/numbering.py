"""Order number generation.

Numbers keep the date-coded shape customers see on receipts
(``ORD-YYMMDD-XXXXXX``). The suffix is drawn from a cryptographic source over
a 32-character alphabet, each candidate is checked against existing orders,
and ``Order.order_number`` is a unique field, so a collision is rejected by
the store rather than silently accepted.
"""

import secrets
from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError

logger = structlog.get_logger(__name__)

# Crockford base32: no I, L, O or U to keep numbers readable over the phone
ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
SUFFIX_LENGTH = 6
MAX_ATTEMPTS = 5


def format_order_number(moment: datetime, suffix: str) -> str:
    return f"ORD-{moment:%y%m%d}-{suffix}"


def random_suffix(length: int = SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def generate_order_number(is_taken, now: datetime | None = None) -> str:
    """Return an order number for which ``is_taken(number)`` is false.

    Raises ``ValidationError`` if every attempt collides.
    """
    moment = now or datetime.now(UTC)
    for attempt in range(1, MAX_ATTEMPTS + 1):
        candidate = format_order_number(moment, random_suffix())
        if not is_taken(candidate):
            return candidate
        logger.warning("Order number collision", order_number=candidate, attempt=attempt)

    raise ValidationError({"order_number": ["Could not allocate a unique order number"]})
