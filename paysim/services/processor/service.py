"""Command processor.

Dispatches structured commands to handlers that load payments from the
repository, apply state-machine transitions and idempotency/conflict rules,
persist the result and return a human-readable line. Every failure is raised
as a `PaymentSimError` subclass.
"""

import threading
import weakref
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from paysim.common.amount import Amount
from paysim.common.errors import (
    CreateConflict,
    MalformedCommand,
    PaymentAlreadyExists,
    PaymentNotFound,
    PaymentSimError,
    UnknownCommand,
    ValidationError,
)
from paysim.common.logging import command_context, logger
from paysim.common.metrics import (
    command_latency_seconds,
    commands_total,
    create_conflicts_total,
    idempotent_replays_total,
    payment_transitions_total,
)
from paysim.common.state_machine import PaymentState
from paysim.services.processor.models import Payment
from paysim.services.processor.repository import PaymentRepository
from paysim.services.processor.schemas import Command, required_arg_count

# Commands whose first argument is a payment id.
_PAYMENT_COMMANDS = frozenset({"CREATE", "AUTHORIZE", "CAPTURE", "VOID", "REFUND", "SETTLE", "STATUS", "AUDIT"})


class CommandProcessor:
    """Owns payment state progression for every command.

    When `pre_settlement_threshold` is set, payments whose amount is greater
    than or equal to it are moved into PRE_SETTLEMENT_REVIEW right after
    authorization and need an explicit CAPTURE to leave it.
    """

    def __init__(self, repository: PaymentRepository, pre_settlement_threshold: Amount | None = None) -> None:
        self.repository = repository
        self.pre_settlement_threshold = pre_settlement_threshold
        self._handlers: dict[str, Callable[[list[str]], str]] = {
            "CREATE": self.handle_create,
            "AUTHORIZE": self.handle_authorize,
            "CAPTURE": self.handle_capture,
            "VOID": self.handle_void,
            "REFUND": self.handle_refund,
            "SETTLE": self.handle_settle,
            "SETTLEMENT": self.handle_settlement,
            "STATUS": self.handle_status,
            "LIST": self.handle_list,
            "AUDIT": self.handle_audit,
        }
        self._locks_guard = threading.Lock()
        # Entries drop out once no command holds or waits on the lock.
        self._payment_locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()

    def execute(self, command: Command) -> str:
        """Run one command and return its result line ("" for EXIT)."""

        if command.name == "EXIT":
            return ""
        handler = self._handlers.get(command.name)
        if handler is None:
            commands_total.labels(command="UNKNOWN", outcome="error").inc()
            raise UnknownCommand(command.name)

        required = required_arg_count(command.name)
        if required is not None and len(command.args) < required:
            commands_total.labels(command=command.name, outcome="error").inc()
            raise MalformedCommand(
                f"insufficient arguments for {command.name}: expected {required}, got {len(command.args)}"
            )

        payment_id = command.args[0] if command.name in _PAYMENT_COMMANDS else ""
        with command_context(command.name, payment_id):
            try:
                with command_latency_seconds.labels(command=command.name).time():
                    result = handler(command.args)
            except PaymentSimError as exc:
                commands_total.labels(command=command.name, outcome="error").inc()
                logger.debug("command_failed kind=%s error=%s", exc.kind, exc)
                raise
        commands_total.labels(command=command.name, outcome="ok").inc()
        return result

    @contextmanager
    def _serialized(self, payment_id: str) -> Iterator[None]:
        """Serialize mutations of one payment id across threads."""

        with self._locks_guard:
            lock = self._payment_locks.get(payment_id)
            if lock is None:
                lock = threading.Lock()
                self._payment_locks[payment_id] = lock
        with lock:
            yield

    def _transition(self, payment: Payment, new_state: PaymentState, action: str, detail: str) -> None:
        """Apply one validated transition and persist it."""

        from_state = payment.state
        payment.transition_to(new_state, action, detail)
        self.repository.save(payment)
        payment_transitions_total.labels(from_state=from_state.value, to_state=new_state.value).inc()
        logger.info(
            "payment_transition payment_id=%s from=%s to=%s action=%s",
            payment.payment_id,
            from_state,
            new_state,
            action,
        )

    def _requires_review(self, payment: Payment) -> bool:
        return self.pre_settlement_threshold is not None and payment.amount >= self.pre_settlement_threshold

    def handle_create(self, args: list[str]) -> str:
        """Create a payment once; repeat with identical attributes is a no-op.

        A repeat with different attributes while the existing payment is still
        INITIATED marks it FAILED. Once a payment has progressed, any
        CREATE for its id is rejected without touching it.
        """

        payment_id, amount_text, currency, merchant_id = args[:4]
        if len(currency) != 3:
            raise ValidationError("currency", f"must be a 3-letter code: {currency}")
        if not merchant_id:
            raise ValidationError("merchant_id", "cannot be empty")
        amount = Amount.parse(amount_text)

        with self._serialized(payment_id):
            candidate = Payment.create(payment_id, amount, currency, merchant_id)
            try:
                existing = self.repository.get(payment_id)
            except PaymentNotFound:
                self.repository.save(candidate)
                logger.info("payment_created payment_id=%s amount=%s currency=%s", payment_id, amount, currency)
                return f"Payment {payment_id} created: {candidate.formatted_amount} {currency}"

            if existing.state != PaymentState.INITIATED:
                raise PaymentAlreadyExists(payment_id, existing.state)

            if existing.equals_attributes(candidate):
                idempotent_replays_total.labels(command="CREATE").inc()
                return f"Payment {payment_id} already exists (idempotent)"

            existing.mark_failed("create conflict")
            self.repository.save(existing)
            create_conflicts_total.inc()
            payment_transitions_total.labels(
                from_state=PaymentState.INITIATED.value, to_state=PaymentState.FAILED.value
            ).inc()
            logger.warning("create_conflict payment_id=%s existing payment marked FAILED", payment_id)
            raise CreateConflict(payment_id)

    def handle_authorize(self, args: list[str]) -> str:
        payment_id = args[0]
        with self._serialized(payment_id):
            payment = self.repository.get(payment_id)
            self._transition(payment, PaymentState.AUTHORIZED, "AUTHORIZE", "Payment authorized")
            if self._requires_review(payment):
                self._transition(
                    payment,
                    PaymentState.PRE_SETTLEMENT_REVIEW,
                    "REVIEW",
                    "Amount meets pre-settlement threshold",
                )
                return f"Payment {payment_id} authorized and moved to PRE_SETTLEMENT_REVIEW"
        return f"Payment {payment_id} authorized"

    def handle_capture(self, args: list[str]) -> str:
        payment_id = args[0]
        with self._serialized(payment_id):
            payment = self.repository.get(payment_id)
            self._transition(payment, PaymentState.CAPTURED, "CAPTURE", "Payment captured")
        return f"Payment {payment_id} captured"

    def handle_void(self, args: list[str]) -> str:
        payment_id = args[0]
        reason = args[1] if len(args) > 1 else ""
        with self._serialized(payment_id):
            payment = self.repository.get(payment_id)
            from_state = payment.state
            payment.transition_to(PaymentState.VOIDED, "VOID", "Payment voided")
            if reason:
                payment.set_void_reason(reason)
            self.repository.save(payment)
            payment_transitions_total.labels(from_state=from_state.value, to_state=PaymentState.VOIDED.value).inc()
            logger.info("payment_voided payment_id=%s from=%s reason=%s", payment_id, from_state, reason or "<none>")
        if reason:
            return f"Payment {payment_id} voided (reason: {reason})"
        return f"Payment {payment_id} voided"

    def handle_refund(self, args: list[str]) -> str:
        """Refund a captured payment in full.

        The optional amount token is echoed back only; it is neither validated
        nor reconciled against the payment amount.
        """

        payment_id = args[0]
        refund_amount = args[1] if len(args) > 1 else ""
        with self._serialized(payment_id):
            payment = self.repository.get(payment_id)
            self._transition(payment, PaymentState.REFUNDED, "REFUND", "Payment refunded")
        if refund_amount:
            return f"Payment {payment_id} refunded ({refund_amount})"
        return f"Payment {payment_id} refunded"

    def handle_settle(self, args: list[str]) -> str:
        payment_id = args[0]
        with self._serialized(payment_id):
            payment = self.repository.get(payment_id)
            if payment.state == PaymentState.SETTLED:
                idempotent_replays_total.labels(command="SETTLE").inc()
                return f"Payment {payment_id} already settled (idempotent)"
            self._transition(payment, PaymentState.SETTLED, "SETTLE", "Payment settled")
        return f"Payment {payment_id} settled"

    def handle_settlement(self, args: list[str]) -> str:
        """Record a settlement batch id and report how many payments are SETTLED now."""

        batch_id = args[0]
        settled = sum(1 for payment in self.repository.list() if payment.state == PaymentState.SETTLED)
        record = self.repository.record_batch_id(batch_id, settled_count=settled)
        logger.info("settlement_recorded batch_id=%s settled=%d at=%s", batch_id, settled, record.recorded_at.isoformat())
        return f"SETTLEMENT {batch_id} recorded. Settled payments: {settled}"

    def handle_status(self, args: list[str]) -> str:
        payment = self.repository.get(args[0])
        return (
            f"Payment {payment.payment_id}: state={payment.state} amount={payment.formatted_amount} "
            f"currency={payment.currency} merchant={payment.merchant_id}"
        )

    def handle_list(self, args: list[str]) -> str:
        payments = sorted(self.repository.list(), key=lambda payment: payment.payment_id)
        if not payments:
            return "No payments found"
        lines = ["Payments:"]
        for payment in payments:
            lines.append(
                f"  {payment.payment_id}: state={payment.state} amount={payment.formatted_amount} "
                f"{payment.currency} merchant={payment.merchant_id}"
            )
        return "\n".join(lines)

    def handle_audit(self, args: list[str]) -> str:
        """Acknowledge an audit request; existence check only, no side effects."""

        if not self.repository.exists(args[0]):
            raise PaymentNotFound(args[0])
        return "AUDIT RECEIVED"
