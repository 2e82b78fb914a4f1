"""Startup config logging for the payment-sim process."""

from paysim.common.config import CommonSettings
from paysim.common.logging import logger

_SECRET_MARKERS = ("KEY", "SECRET", "PASSWORD", "TOKEN")


def _display(name: str, value: object) -> str:
    if value is None:
        return "<unset>"
    if any(marker in name for marker in _SECRET_MARKERS):
        return "<redacted>"
    return str(value)


def startup_config(current: CommonSettings, **overrides: object) -> dict[str, str]:
    """Resolved settings keyed by env var name, with secret-like values redacted.

    `overrides` holds values that replace a setting for this run, such as a
    `--threshold` flag; they are reported under the setting's env var name.
    """

    values = current.model_dump()
    values.update(overrides)
    return {name.upper(): _display(name.upper(), value) for name, value in sorted(values.items())}


def log_startup_config(current: CommonSettings, **overrides: object) -> None:
    logger.info("startup_config=%s", startup_config(current, **overrides))
