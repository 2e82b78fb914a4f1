"""In-memory store contract and locking."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from paysim.common.amount import Amount
from paysim.common.errors import PaymentNotFound
from paysim.common.state_machine import PaymentState
from paysim.services.processor.models import Payment
from paysim.services.processor.repository import ReadWriteLock


def make_payment(payment_id):
    return Payment.create(payment_id, Amount.parse("10"), "USD", "M001")


def test_save_and_get(repository):
    repository.save(make_payment("P001"))

    assert repository.exists("P001")
    assert repository.get("P001").payment_id == "P001"


def test_get_missing_raises(repository):
    with pytest.raises(PaymentNotFound) as exc_info:
        repository.get("NOPE")
    assert exc_info.value.payment_id == "NOPE"
    assert not repository.exists("NOPE")


def test_save_replaces_by_id(repository):
    payment = make_payment("P001")
    repository.save(payment)
    payment.transition_to(PaymentState.AUTHORIZED, "AUTHORIZE", "")
    repository.save(payment)

    assert len(repository.list()) == 1
    assert repository.get("P001").state == PaymentState.AUTHORIZED


def test_unsaved_mutations_do_not_leak(repository):
    """Only `save` changes stored state."""

    repository.save(make_payment("P001"))
    loaded = repository.get("P001")
    loaded.transition_to(PaymentState.AUTHORIZED, "AUTHORIZE", "")

    stored = repository.get("P001")
    assert stored.state == PaymentState.INITIATED
    assert len(stored.history) == 1


def test_batch_ids(repository):
    assert not repository.batch_id_exists("B1")
    first = repository.record_batch_id("B2", settled_count=3)
    repository.record_batch_id("B1")
    repeat = repository.record_batch_id("B2")

    assert repository.batch_id_exists("B1")
    assert repository.list_batch_ids() == ["B1", "B2"]
    assert (first.batch_id, first.settled_count) == ("B2", 3)
    assert (repeat.batch_id, repeat.settled_count) == ("B2", 0)


def test_concurrent_saves(repository):
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda i: repository.save(make_payment(f"P{i:04d}")), range(200)))

    assert len(repository.list()) == 200


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=2)

    def reader():
        with lock.read_locked():
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=3)
    assert not inside.broken


def test_writer_excludes_readers():
    lock = ReadWriteLock()
    events = []
    writer_in = threading.Event()

    def writer():
        with lock.write_locked():
            writer_in.set()
            time.sleep(0.05)
            events.append("write-done")

    def reader():
        writer_in.wait(timeout=2)
        with lock.read_locked():
            events.append("read")

    threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=3)

    assert events == ["write-done", "read"]
