"""Cross-service event contracts for account (user) events.

The user service publishes these on the ``account_events`` exchange. They are
registered in the food ordering domain via ``register_external_event()`` so the
same handlers run whether a message arrives through the broker reactor or
through a Protean event stream.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier


class AccountDeleted(BaseEvent):
    """A user account was deleted; its personal data must be removed."""

    __version__ = 1

    user_id = Identifier(required=True)
    deleted_at = DateTime()
