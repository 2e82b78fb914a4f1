"""Structured command shape shared by the parser and the processor."""

from pydantic import BaseModel, Field


# Number of REQUIRED arguments per command; optional trailing arguments are not counted.
COMMAND_ARG_COUNTS: dict[str, int] = {
    "CREATE": 4,  # <payment_id> <amount> <currency> <merchant_id>
    "AUTHORIZE": 1,
    "CAPTURE": 1,
    "VOID": 1,  # [reason_code]
    "REFUND": 1,  # [amount]
    "SETTLE": 1,
    "SETTLEMENT": 1,  # <batch_id>
    "STATUS": 1,
    "LIST": 0,
    "AUDIT": 1,
    "EXIT": 0,
}


class Command(BaseModel):
    """One parsed command line."""

    name: str
    args: list[str] = Field(default_factory=list)


def required_arg_count(name: str) -> int | None:
    """Required argument count for a known command, None for an unknown one."""

    return COMMAND_ARG_COUNTS.get(name)
