"""Messaging configuration.

Values come from the ``[custom.messaging]`` table of ``domain.toml`` with the
active ``PROTEAN_ENV`` overlay applied. Per-process overrides use Protean's
``${ORDER_...|default}`` substitution in that table, so every value may
arrive as a string and is coerced to its declared type here.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as SettingsError
from protean.exceptions import ConfigurationError

BROKER_SCHEMES = ("memory://", "redis://", "rediss://")


class MessagingSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    broker_url: str = "memory://"
    order_exchange: str = "order_events"
    dead_letter_exchange: str = "order_events.dead_letter"
    queue: str = "order_queue"
    inbound_exchanges: tuple[str, ...] = ("account_events", "restaurant_events", "payment_events")

    # Connection supervision: capped exponential backoff
    reconnect_initial_delay: float = Field(default=1.0, gt=0)
    reconnect_multiplier: float = Field(default=2.0, ge=1)
    reconnect_max_delay: float = Field(default=30.0, gt=0)
    reconnect_max_attempts: int | None = Field(default=None, ge=1)

    # Reactor: attempts per message before dead-lettering
    retry_attempts: int = Field(default=3, ge=1)
    retry_initial_delay: float = Field(default=0.5, ge=0)
    retry_max_delay: float = Field(default=10.0, ge=0)
    poll_timeout: float = Field(default=1.0, ge=0)

    # Adapter-specific tables, e.g. ``[custom.messaging.redis]``
    extra: dict = Field(default_factory=dict)

    @field_validator("broker_url")
    @classmethod
    def _supported_broker(cls, value: str) -> str:
        if not value.startswith(BROKER_SCHEMES):
            raise ValueError(f"Unsupported broker URL: {value}")
        return value

    @field_validator("reconnect_max_attempts", mode="before")
    @classmethod
    def _blank_means_unlimited(cls, value):
        return None if value in ("", None) else value

    @classmethod
    def from_mapping(cls, values: dict) -> "MessagingSettings":
        """Build settings from a config table; unknown keys are kept in ``extra``.

        Raises ``ConfigurationError`` when a value is missing its type or range.
        """
        known = set(cls.model_fields) - {"extra"}
        kwargs = {key: value for key, value in values.items() if key in known}
        extra = {key: value for key, value in values.items() if key not in known}
        try:
            return cls(**kwargs, extra=extra)
        except SettingsError as exc:
            problems = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in exc.errors())
            raise ConfigurationError(f"Invalid messaging settings: {problems}") from exc

    @classmethod
    def from_domain(cls, domain) -> "MessagingSettings":
        custom = domain.config.get("custom") or {}
        return cls.from_mapping(custom.get("messaging") or {})
