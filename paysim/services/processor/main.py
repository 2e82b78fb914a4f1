"""CLI entrypoint: wire settings, logging, store and processor, then run the loop."""

import argparse
import io
import signal
import sys

from paysim.common.config import parse_threshold, settings
from paysim.common.errors import InvalidAmount
from paysim.common.logging import configure_logging, logger
from paysim.common.metrics import metrics_text
from paysim.common.startup import log_startup_config
from paysim.services.processor.repository import InMemoryPaymentRepository
from paysim.services.processor.runner import CommandRunner
from paysim.services.processor.service import CommandProcessor

SHUTDOWN_MESSAGE = "\nShutdown requested, exiting..."


def _handle_sigterm(signum, frame) -> None:
    raise KeyboardInterrupt


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payment-sim",
        description="Run payment lifecycle commands from a file or stdin.",
    )
    parser.add_argument("input", nargs="?", default=None, help="Command file (reads stdin when omitted)")
    parser.add_argument(
        "--threshold",
        default=None,
        help="Pre-settlement review threshold; overrides PRE_SETTLEMENT_THRESHOLD",
    )
    parser.add_argument(
        "--dump-metrics",
        action="store_true",
        help="Write Prometheus metrics to stderr on exit",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse CLI args, run the command loop and return the process exit code."""

    args = build_parser().parse_args(argv)
    configure_logging()

    raw_threshold = args.threshold if args.threshold is not None else settings.pre_settlement_threshold
    log_startup_config(settings, pre_settlement_threshold=raw_threshold)

    try:
        threshold = parse_threshold(raw_threshold)
    except InvalidAmount:
        print(f"ERROR invalid PRE_SETTLEMENT_THRESHOLD: {raw_threshold}", file=sys.stderr)
        return 1
    if threshold is not None:
        logger.info("PRE_SETTLEMENT_REVIEW enabled for amounts >= %s", threshold)

    if args.input:
        try:
            input_stream = open(args.input, encoding="utf-8", errors="replace")
        except OSError as exc:
            print(f"ERROR cannot open file: {exc}", file=sys.stderr)
            return 1
    else:
        input_stream = sys.stdin
        # Undecodable bytes become U+FFFD so one bad line cannot end the run.
        if isinstance(input_stream, io.TextIOWrapper):
            input_stream.reconfigure(errors="replace")

    signal.signal(signal.SIGTERM, _handle_sigterm)
    processor = CommandProcessor(InMemoryPaymentRepository(), pre_settlement_threshold=threshold)
    try:
        CommandRunner(processor, input_stream, sys.stdout).run()
    except KeyboardInterrupt:
        print(SHUTDOWN_MESSAGE)
        logger.info("shutdown requested")
    finally:
        if input_stream is not sys.stdin:
            input_stream.close()
        if args.dump_metrics:
            sys.stderr.write(metrics_text())
    return 0


if __name__ == "__main__":
    sys.exit(main())
