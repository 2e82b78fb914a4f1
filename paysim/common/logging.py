"""Structured JSON logging with command/payment context fields.

Every record carries the service name plus the command and payment id being
processed when it was emitted. The processor binds those through
`command_context`; code outside a command logs them as empty strings.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TextIO

from pythonjsonlogger.json import JsonFormatter

from paysim.common.config import settings


command_ctx: ContextVar[str] = ContextVar("command", default="")
payment_id_ctx: ContextVar[str] = ContextVar("payment_id", default="")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(service_name)s %(command)s %(payment_id)s %(message)s"


@contextmanager
def command_context(command: str, payment_id: str = "") -> Iterator[None]:
    """Bind the command and payment id to log records emitted inside the block."""

    command_token = command_ctx.set(command)
    payment_token = payment_id_ctx.set(payment_id)
    try:
        yield
    finally:
        command_ctx.reset(command_token)
        payment_id_ctx.reset(payment_token)


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = settings.service_name
        record.command = command_ctx.get()
        record.payment_id = payment_id_ctx.get()
        return True


def configure_logging(level: str | None = None, stream: TextIO | None = None) -> None:
    """Install the JSON handler on the root logger, replacing any existing ones.

    Logs go to stderr by default; stdout is reserved for command results.
    """

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.addFilter(ContextFilter())
    handler.setFormatter(
        JsonFormatter(LOG_FORMAT, rename_fields={"asctime": "ts", "levelname": "level", "name": "logger"})
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel((level or settings.log_level).upper())


logger = logging.getLogger("paysim")
