"""Payment storage consumed by the command processor.

The processor only talks to `PaymentRepository`. `InMemoryPaymentRepository`
is the reference store: a dict keyed by payment id behind a reader/writer lock.
Payments are copied on the way in and out, so a caller's in-flight mutations
never reach the store until it calls `save`.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

from paysim.common.errors import PaymentNotFound
from paysim.services.processor.models import BatchRecord, Payment


class PaymentRepository(ABC):
    """Port for payment storage.

    Contract:
    - save() is insert-or-replace by payment id
    - get() raises PaymentNotFound when the id is unknown
    - list() order is unspecified; callers sort
    - record_batch_id() never rejects a repeated batch id
    """

    @abstractmethod
    def save(self, payment: Payment) -> None: ...

    @abstractmethod
    def get(self, payment_id: str) -> Payment: ...

    @abstractmethod
    def list(self) -> list[Payment]: ...

    @abstractmethod
    def exists(self, payment_id: str) -> bool: ...

    @abstractmethod
    def record_batch_id(self, batch_id: str, settled_count: int = 0) -> BatchRecord: ...

    @abstractmethod
    def batch_id_exists(self, batch_id: str) -> bool: ...

    @abstractmethod
    def list_batch_ids(self) -> list[str]: ...


class ReadWriteLock:
    """Many concurrent readers or one exclusive writer.

    Waiting writers block new readers so a steady stream of reads cannot
    starve a write.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writing or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class InMemoryPaymentRepository(PaymentRepository):
    """Process-local store; contents vanish with the process."""

    def __init__(self) -> None:
        self._payments: dict[str, Payment] = {}
        self._batches: list[BatchRecord] = []
        self._lock = ReadWriteLock()

    def save(self, payment: Payment) -> None:
        stored = payment.model_copy(deep=True)
        with self._lock.write_locked():
            self._payments[stored.payment_id] = stored

    def get(self, payment_id: str) -> Payment:
        with self._lock.read_locked():
            payment = self._payments.get(payment_id)
            if payment is None:
                raise PaymentNotFound(payment_id)
            return payment.model_copy(deep=True)

    def list(self) -> list[Payment]:
        with self._lock.read_locked():
            return [payment.model_copy(deep=True) for payment in self._payments.values()]

    def exists(self, payment_id: str) -> bool:
        with self._lock.read_locked():
            return payment_id in self._payments

    def record_batch_id(self, batch_id: str, settled_count: int = 0) -> BatchRecord:
        record = BatchRecord(batch_id=batch_id, settled_count=settled_count)
        with self._lock.write_locked():
            self._batches.append(record)
        return record

    def batch_id_exists(self, batch_id: str) -> bool:
        with self._lock.read_locked():
            return any(record.batch_id == batch_id for record in self._batches)

    def list_batch_ids(self) -> list[str]:
        """Distinct recorded batch ids, sorted."""

        with self._lock.read_locked():
            return sorted({record.batch_id for record in self._batches})
