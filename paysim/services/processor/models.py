"""Payment domain models.

`Payment` is the aggregate the processor mutates; `TimelineEntry` is its
append-only audit trail and `BatchRecord` marks a reported settlement batch.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from paysim.common.amount import Amount
from paysim.common.state_machine import PaymentState, validate_transition


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimelineEntry(BaseModel):
    """Immutable audit record of one state transition."""

    from_state: PaymentState | None
    to_state: PaymentState
    action: str
    detail: str
    created_at: datetime = Field(default_factory=_utcnow)


class Payment(BaseModel):
    """Current state of a payment aggregate plus its transition history."""

    payment_id: str
    amount: Amount
    currency: str
    merchant_id: str
    state: PaymentState = PaymentState.INITIATED
    void_reason: str | None = None
    history: list[TimelineEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def create(cls, payment_id: str, amount: Amount, currency: str, merchant_id: str) -> "Payment":
        """Build a payment in `INITIATED` with its creation entry recorded."""

        now = _utcnow()
        payment = cls(
            payment_id=payment_id,
            amount=amount,
            currency=currency,
            merchant_id=merchant_id,
            created_at=now,
            updated_at=now,
        )
        payment._record(None, PaymentState.INITIATED, "CREATE", "Payment created")
        return payment

    def _record(self, from_state: PaymentState | None, to_state: PaymentState, action: str, detail: str) -> None:
        self.history.append(
            TimelineEntry(from_state=from_state, to_state=to_state, action=action, detail=detail)
        )

    def transition_to(self, new_state: PaymentState, action: str, detail: str) -> None:
        """Apply one validated state transition.

        Validation runs before any field is touched, so a rejected transition
        leaves the payment unchanged.
        """

        validate_transition(self.state, new_state)
        from_state = self.state
        self.state = new_state
        self.updated_at = _utcnow()
        self._record(from_state, new_state, action, detail)

    def mark_failed(self, reason: str) -> None:
        """Force the payment into `FAILED` regardless of the transition table."""

        from_state = self.state
        self.state = PaymentState.FAILED
        self.updated_at = _utcnow()
        self._record(from_state, PaymentState.FAILED, "FAIL", reason)

    def set_void_reason(self, reason: str) -> None:
        self.void_reason = reason

    def equals_attributes(self, other: "Payment") -> bool:
        """Compare creation attributes only; used for CREATE idempotency."""

        return (
            self.payment_id == other.payment_id
            and self.amount == other.amount
            and self.currency == other.currency
            and self.merchant_id == other.merchant_id
        )

    @property
    def formatted_amount(self) -> str:
        return self.amount.format()


class BatchRecord(BaseModel):
    """A settlement batch id as reported, with the settled count seen at that time."""

    batch_id: str
    settled_count: int = 0
    recorded_at: datetime = Field(default_factory=_utcnow)
