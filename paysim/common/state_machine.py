"""Payment state machine transitions enforced by the command processor."""

from enum import Enum

from paysim.common.errors import InvalidTransition


class PaymentState(str, Enum):
    INITIATED = "INITIATED"
    AUTHORIZED = "AUTHORIZED"
    PRE_SETTLEMENT_REVIEW = "PRE_SETTLEMENT_REVIEW"
    CAPTURED = "CAPTURED"
    SETTLED = "SETTLED"
    VOIDED = "VOIDED"
    REFUNDED = "REFUNDED"
    FAILED = "FAILED"

    def __str__(self) -> str:
        return self.value


ALLOWED_TRANSITIONS: dict[PaymentState, frozenset[PaymentState]] = {
    PaymentState.INITIATED: frozenset(
        {PaymentState.AUTHORIZED, PaymentState.VOIDED, PaymentState.FAILED}
    ),
    PaymentState.AUTHORIZED: frozenset(
        {PaymentState.PRE_SETTLEMENT_REVIEW, PaymentState.CAPTURED, PaymentState.VOIDED}
    ),
    PaymentState.PRE_SETTLEMENT_REVIEW: frozenset({PaymentState.CAPTURED}),
    PaymentState.CAPTURED: frozenset({PaymentState.SETTLED, PaymentState.REFUNDED}),
    # Self-loop only, so a repeated settlement stays legal.
    PaymentState.SETTLED: frozenset({PaymentState.SETTLED}),
    PaymentState.VOIDED: frozenset(),
    PaymentState.REFUNDED: frozenset(),
    PaymentState.FAILED: frozenset(),
}


def can_transition(current: str, new: str) -> bool:
    """Return whether the table allows `current -> new`; unknown states are never allowed."""

    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


def validate_transition(current: str, new: str) -> None:
    """Raise when a transition is not allowed by the state machine."""

    if not can_transition(current, new):
        raise InvalidTransition(current, new)
