"""Domain error taxonomy raised by the parser and the command processor.

Every failure a caller can trigger is a `PaymentSimError` subclass carrying its
context as attributes, so callers branch on type (or `kind`) instead of parsing
messages. The read loop renders `str(exc)` as a single `ERROR ...` line.
"""


class PaymentSimError(Exception):
    """Base class for all domain-level failures."""

    kind = "error"


class PaymentNotFound(PaymentSimError):
    kind = "payment_not_found"

    def __init__(self, payment_id: str) -> None:
        self.payment_id = payment_id
        super().__init__(f"payment {payment_id} not found")


class InvalidAmount(PaymentSimError):
    kind = "invalid_amount"

    def __init__(self, raw: str, reason: str) -> None:
        self.raw = raw
        self.reason = reason
        super().__init__(f"invalid amount: {reason}: {raw}")


class InvalidTransition(PaymentSimError):
    """Raised when the transition table does not allow `from_state -> to_state`."""

    kind = "invalid_transition"

    def __init__(self, from_state, to_state) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"invalid transition from {from_state} to {to_state}")


class CreateConflict(PaymentSimError):
    """CREATE reused an INITIATED payment id with different attributes.

    The existing payment has already been marked FAILED when this is raised.
    """

    kind = "create_conflict"

    def __init__(self, payment_id: str) -> None:
        self.payment_id = payment_id
        super().__init__(
            f"create conflict for payment {payment_id}: existing payment marked as FAILED"
        )


class PaymentAlreadyExists(PaymentSimError):
    kind = "payment_already_exists"

    def __init__(self, payment_id: str, state) -> None:
        self.payment_id = payment_id
        self.state = state
        super().__init__(f"payment {payment_id} already exists in state {state}")


class ValidationError(PaymentSimError):
    kind = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"validation error for {field}: {message}")


class MalformedCommand(PaymentSimError):
    kind = "malformed_command"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class UnknownCommand(PaymentSimError):
    kind = "unknown_command"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown command: {name}")
