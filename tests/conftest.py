"""Shared fixtures for processor tests."""

import pytest

from paysim.common.amount import Amount
from paysim.common.errors import PaymentSimError
from paysim.services.processor.parser import parse_command
from paysim.services.processor.repository import InMemoryPaymentRepository
from paysim.services.processor.service import CommandProcessor


@pytest.fixture
def repository():
    return InMemoryPaymentRepository()


@pytest.fixture
def processor(repository):
    """Processor with the pre-settlement review gate disabled."""

    return CommandProcessor(repository)


@pytest.fixture
def review_processor(repository):
    """Processor routing amounts >= 1000 through PRE_SETTLEMENT_REVIEW."""

    return CommandProcessor(repository, pre_settlement_threshold=Amount.parse("1000"))


def run(processor: CommandProcessor, line: str) -> str:
    """Parse and execute one line."""

    return processor.execute(parse_command(line))


def drive(processor: CommandProcessor, *lines: str) -> list[str]:
    """Execute lines in order, collecting results or `ERROR ...` strings."""

    outputs = []
    for line in lines:
        try:
            outputs.append(run(processor, line))
        except PaymentSimError as exc:
            outputs.append(f"ERROR {exc}")
    return outputs
