"""Text-to-command translation for the read loop.

Lines are whitespace-tokenized. A token starting with `#` opens a trailing
comment only after every required argument has been consumed and when it is at
least the fourth token of the line; anywhere earlier it makes the line
malformed. A `#` inside a token is literal.
"""

from paysim.common.errors import MalformedCommand, UnknownCommand
from paysim.services.processor.schemas import Command, required_arg_count

# Command name + two arguments must precede a comment.
MIN_TOKENS_BEFORE_COMMENT = 3


def parse_command(line: str) -> Command:
    """Parse one input line into a `Command`."""

    tokens = line.split()
    if not tokens:
        raise MalformedCommand("empty input")

    name = tokens[0]
    if name.startswith("#"):
        raise MalformedCommand(
            "malformed input: '#' comment only allowed after third token (found at position 1)"
        )
    required = required_arg_count(name)
    if required is None:
        raise UnknownCommand(name)

    return Command(name=name, args=_extract_args(name, tokens[1:], required))


def _extract_args(name: str, tokens: list[str], required: int) -> list[str]:
    args: list[str] = []
    for index, token in enumerate(tokens):
        # 1-based position of this token on the line, counting the command name.
        position = index + 2
        if token.startswith("#"):
            if len(args) < required:
                raise MalformedCommand(
                    f"malformed input: unexpected '#' in required argument position for {name} "
                    f"(found at position {position})"
                )
            if position <= MIN_TOKENS_BEFORE_COMMENT:
                raise MalformedCommand(
                    "malformed input: '#' comment only allowed after third token "
                    f"(found at position {position})"
                )
            break
        args.append(token)

    if len(args) < required:
        raise MalformedCommand(
            f"insufficient arguments for {name}: expected {required}, got {len(args)}"
        )
    return args
