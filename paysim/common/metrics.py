"""Prometheus metric definitions for the command processor."""

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, generate_latest


commands_total = Counter(
    "commands_total",
    "Total commands executed by outcome",
    ["command", "outcome"],
)
command_latency_seconds = Histogram(
    "command_latency_seconds",
    "Command execution latency seconds",
    ["command"],
)
payment_transitions_total = Counter(
    "payment_transitions_total",
    "Persisted payment state transitions",
    ["from_state", "to_state"],
)
create_conflicts_total = Counter(
    "create_conflicts_total",
    "CREATE commands that failed an existing INITIATED payment",
)
idempotent_replays_total = Counter(
    "idempotent_replays_total",
    "Repeated CREATE/SETTLE commands answered without mutation",
    ["command"],
)


def metrics_text(registry: CollectorRegistry = REGISTRY) -> str:
    """Expose all registered Prometheus metrics in text format."""

    return generate_latest(registry).decode("utf-8")
