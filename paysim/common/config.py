"""Central environment-driven settings for the payment simulator.

The CLI loads this once at startup. Behavior is controlled by environment
variables (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from paysim.common.amount import Amount, parse_fraction
from paysim.common.errors import InvalidAmount


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "payment-sim"
    log_level: str = "WARNING"
    pre_settlement_threshold: str | None = None
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def parse_threshold(raw: str | None) -> Amount | None:
    """Turn a raw threshold setting into an `Amount`, or `None` when the review gate is off.

    Absent, blank and zero values disable the gate. Malformed or negative values
    raise `InvalidAmount`.
    """

    if raw is None or not raw.strip():
        return None
    value = parse_fraction(raw.strip())
    if value == 0:
        return None
    if value < 0:
        raise InvalidAmount(raw, "threshold must not be negative")
    return Amount(value=value)


settings = CommonSettings()
