"""Read-parse-execute-print loop over a text stream."""

from typing import TextIO

from paysim.common.errors import PaymentSimError
from paysim.common.logging import logger
from paysim.services.processor.parser import parse_command
from paysim.services.processor.service import CommandProcessor


class CommandRunner:
    """Feeds input lines to the processor one at a time until EXIT or end of input.

    Domain errors become `ERROR <message>` lines and the loop continues; any
    other exception propagates to the caller.
    """

    def __init__(self, processor: CommandProcessor, input_stream: TextIO, output: TextIO) -> None:
        self.processor = processor
        self.input_stream = input_stream
        self.output = output

    def _write(self, text: str) -> None:
        self.output.write(f"{text}\n")
        self.output.flush()

    def run(self) -> None:
        for raw in self.input_stream:
            line = raw.strip()
            if not line:
                continue

            try:
                command = parse_command(line)
            except PaymentSimError as exc:
                self._write(f"ERROR {exc}")
                continue

            if command.name == "EXIT":
                logger.info("exit command received")
                return

            try:
                result = self.processor.execute(command)
            except PaymentSimError as exc:
                self._write(f"ERROR {exc}")
                continue

            if result:
                self._write(result)
