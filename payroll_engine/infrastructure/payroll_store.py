"""Infrastructure layer for payroll persistence."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Iterator, Protocol

from payroll_engine.domain import AdvanceRecord, PayrollRecord


class PayrollRepository(Protocol):
    """Persistence contract for payroll and advance rows."""

    def transaction(self) -> Iterator[None]: ...

    def next_payroll_id(self) -> str: ...

    def next_advance_id(self) -> str: ...

    def add_payroll(self, record: PayrollRecord) -> None: ...

    def add_advance(self, record: AdvanceRecord) -> None: ...

    def list_payrolls(self, start: date | None = None, end: date | None = None) -> list[PayrollRecord]: ...

    def list_advances(self, start: date | None = None, end: date | None = None) -> list[AdvanceRecord]: ...

    def settle_advance(self, advance_id: str, settlement_date: date, *, actor: str) -> AdvanceRecord | None: ...

    def reset(self) -> None: ...


def _in_range(value: date, start: date | None, end: date | None) -> bool:
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True


class InMemoryPayrollRepository:
    """Simple in-memory repository for fast iteration and tests.

    Writes made inside ``transaction()`` are staged and only become visible
    when the block exits cleanly; an exception discards all of them.
    """

    def __init__(self) -> None:
        self._payrolls: list[PayrollRecord] = []
        self._advances: list[AdvanceRecord] = []
        self._payroll_counter = 0
        self._advance_counter = 0
        self._lock = threading.Lock()
        self._local = threading.local()

    # ------------------------------------------------------------------
    # internal helpers
    # ------------------------------------------------------------------
    def _staged(self) -> tuple[list[PayrollRecord], list[AdvanceRecord]] | None:
        return getattr(self._local, "staged", None)

    # ------------------------------------------------------------------
    # transactions
    # ------------------------------------------------------------------
    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._staged() is not None:
            yield
            return
        self._local.staged = ([], [])
        try:
            yield
            payrolls, advances = self._local.staged
            with self._lock:
                self._payrolls.extend(payrolls)
                self._advances.extend(advances)
        finally:
            self._local.staged = None

    # ------------------------------------------------------------------
    # CRUD operations
    # ------------------------------------------------------------------
    def next_payroll_id(self) -> str:
        with self._lock:
            self._payroll_counter += 1
            return f"payroll-{self._payroll_counter:06d}"

    def next_advance_id(self) -> str:
        with self._lock:
            self._advance_counter += 1
            return f"advance-{self._advance_counter:06d}"

    def add_payroll(self, record: PayrollRecord) -> None:
        staged = self._staged()
        if staged is not None:
            staged[0].append(record)
            return
        with self._lock:
            self._payrolls.append(record)

    def add_advance(self, record: AdvanceRecord) -> None:
        staged = self._staged()
        if staged is not None:
            staged[1].append(record)
            return
        with self._lock:
            self._advances.append(record)

    def list_payrolls(self, start: date | None = None, end: date | None = None) -> list[PayrollRecord]:
        with self._lock:
            return [record for record in self._payrolls if _in_range(record.pay_period_date, start, end)]

    def list_advances(self, start: date | None = None, end: date | None = None) -> list[AdvanceRecord]:
        with self._lock:
            return [record for record in self._advances if _in_range(record.advance_date, start, end)]

    def settle_advance(self, advance_id: str, settlement_date: date, *, actor: str) -> AdvanceRecord | None:
        with self._lock:
            for index, record in enumerate(self._advances):
                if record.advance_id == advance_id:
                    settled = replace(record, settlement_date=settlement_date, updated_by=actor)
                    self._advances[index] = settled
                    return settled
        return None

    def reset(self) -> None:
        with self._lock:
            self._payrolls.clear()
            self._advances.clear()
            self._payroll_counter = 0
            self._advance_counter = 0
