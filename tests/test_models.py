"""Payment aggregate behaviour."""

import pytest

from paysim.common.amount import Amount
from paysim.common.errors import InvalidTransition
from paysim.common.state_machine import PaymentState
from paysim.services.processor.models import Payment


def make_payment(payment_id="P001", amount="100", currency="USD", merchant_id="M001"):
    return Payment.create(payment_id, Amount.parse(amount), currency, merchant_id)


def test_create_starts_initiated_with_one_entry():
    payment = make_payment(currency="MYR")

    assert payment.state == PaymentState.INITIATED
    assert payment.currency == "MYR"
    assert payment.void_reason is None
    assert len(payment.history) == 1
    entry = payment.history[0]
    assert entry.from_state is None
    assert entry.to_state == PaymentState.INITIATED
    assert entry.action == "CREATE"


def test_transition_appends_history():
    payment = make_payment()
    payment.transition_to(PaymentState.AUTHORIZED, "AUTHORIZE", "Payment authorized")

    assert payment.state == PaymentState.AUTHORIZED
    assert len(payment.history) == 2
    assert payment.history[-1].from_state == PaymentState.INITIATED
    assert payment.history[-1].detail == "Payment authorized"
    assert payment.updated_at >= payment.created_at


def test_rejected_transition_leaves_payment_unchanged():
    """A denied transition must not partially mutate the aggregate."""

    payment = make_payment()
    payment.transition_to(PaymentState.AUTHORIZED, "AUTHORIZE", "Payment authorized")
    before = payment.model_dump()

    with pytest.raises(InvalidTransition):
        payment.transition_to(PaymentState.SETTLED, "SETTLE", "")

    assert payment.model_dump() == before


def test_mark_failed_bypasses_table():
    payment = make_payment()
    payment.transition_to(PaymentState.AUTHORIZED, "AUTHORIZE", "")
    payment.transition_to(PaymentState.CAPTURED, "CAPTURE", "")

    payment.mark_failed("create conflict")

    assert payment.state == PaymentState.FAILED
    assert payment.history[-1].from_state == PaymentState.CAPTURED
    assert payment.history[-1].action == "FAIL"
    assert payment.history[-1].detail == "create conflict"


def test_equals_attributes():
    base = make_payment(amount="100.50")

    assert base.equals_attributes(make_payment(amount="100.5"))
    assert not base.equals_attributes(make_payment(amount="100.00"))
    assert not base.equals_attributes(make_payment(amount="100.50", currency="EUR"))
    assert not base.equals_attributes(make_payment(payment_id="P002", amount="100.50"))
    assert not base.equals_attributes(make_payment(amount="100.50", merchant_id="M002"))


def test_equals_attributes_ignores_state():
    base = make_payment()
    other = make_payment()
    other.transition_to(PaymentState.AUTHORIZED, "AUTHORIZE", "")
    assert base.equals_attributes(other)


def test_void_reason_is_not_history():
    payment = make_payment()
    payment.transition_to(PaymentState.VOIDED, "VOID", "Payment voided")
    payment.set_void_reason("FRAUD")

    assert payment.void_reason == "FRAUD"
    assert all("FRAUD" not in entry.detail for entry in payment.history)


def test_formatted_amount():
    assert make_payment(amount="10.50").formatted_amount == "10.5"
