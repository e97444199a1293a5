"""Domain entities for persisted payroll runs."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal

from payroll_engine.core.schema import AllocationCalculation, InterOrganizationAdvance


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class PayrollRecord:
    """One stored payroll row, produced per funding allocation."""

    payroll_id: str
    employee_ref: str
    pay_period_date: date
    calculation: AllocationCalculation
    created_by: str
    updated_by: str
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def net_salary(self) -> Decimal:
        return self.calculation.net_salary


@dataclass(slots=True)
class AdvanceRecord:
    """A stored inter-organization advance bound to its payroll row."""

    advance_id: str
    payroll_id: str
    advance_date: date
    advance: InterOrganizationAdvance
    created_by: str
    updated_by: str
    settlement_date: date | None = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def is_settled(self) -> bool:
        return self.settlement_date is not None
