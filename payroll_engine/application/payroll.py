"""Application service layer for payroll runs."""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable

from payroll_engine.core.engine import PayrollEngine, PeriodLike
from payroll_engine.core.money import ZERO, quantize
from payroll_engine.core.schema import (
    AdvancePreview,
    EmployeeSnapshot,
    InterOrganizationAdvance,
    PayPeriod,
    PayrollSummary,
)
from payroll_engine.core.validation import PayrollError, PayrollInputError
from payroll_engine.domain import AdvanceRecord, PayrollRecord
from payroll_engine.infrastructure import InMemoryPayrollRepository, PayrollRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EmployeePayrollRun:
    """Outcome of processing one employee for one pay period."""

    employee_ref: str
    pay_period: str
    summary: PayrollSummary
    advances: list[InterOrganizationAdvance] = field(default_factory=list)
    payroll_ids: list[str] = field(default_factory=list)
    advance_ids: list[str] = field(default_factory=list)
    saved: bool = False

    @property
    def total_advance_amount(self) -> Decimal:
        return quantize(sum((advance.amount for advance in self.advances), ZERO))

    def to_dict(self) -> dict[str, object]:
        return {
            "employee_ref": self.employee_ref,
            "pay_period": self.pay_period,
            "saved": self.saved,
            "payroll_ids": list(self.payroll_ids),
            "advance_ids": list(self.advance_ids),
            "summary": self.summary.model_dump(mode="json"),
            "advances": [advance.model_dump(mode="json") for advance in self.advances],
            "totals": {
                "payrolls_created": len(self.payroll_ids),
                "advances_created": len(self.advance_ids),
                "total_advance_amount": str(self.total_advance_amount),
                "total_net_salary": str(self.summary.net_salary),
            },
        }


@dataclass(slots=True)
class BulkPayrollReport:
    pay_period: str
    results: list[EmployeePayrollRun] = field(default_factory=list)
    errors: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "pay_period": self.pay_period,
            "processed": len(self.results),
            "failed": len(self.errors),
            "results": [run.to_dict() for run in self.results],
            "errors": list(self.errors),
        }


class PayrollService:
    """Coordinates payroll calculation with persistence."""

    def __init__(self, repository: PayrollRepository, engine: PayrollEngine | None = None) -> None:
        self._repository = repository
        self._engine = engine or PayrollEngine()

    @property
    def engine(self) -> PayrollEngine:
        return self._engine

    # ------------------------------------------------------------------
    # calculation only
    # ------------------------------------------------------------------
    def calculate_summary(
        self, employee: EmployeeSnapshot, pay_period: PeriodLike, tax_year: int | None = None
    ) -> PayrollSummary:
        return self._engine.calculate_employee_payroll_summary(employee, employee.allocations, pay_period, tax_year)

    def preview_advances(self, employee: EmployeeSnapshot, pay_period: PeriodLike) -> list[AdvancePreview]:
        return self._engine.preview_inter_organization_advances(employee, pay_period)

    # ------------------------------------------------------------------
    # payroll runs
    # ------------------------------------------------------------------
    def process_employee_payroll(
        self,
        employee: EmployeeSnapshot,
        pay_period: PeriodLike,
        *,
        actor: str,
        save: bool = True,
        tax_year: int | None = None,
    ) -> EmployeePayrollRun:
        """Calculate every allocation of ``employee`` and optionally persist the rows.

        All payroll rows and advances for the employee are written in a single
        repository transaction, so either all of them are stored or none.
        """

        if not actor or not actor.strip():
            raise PayrollInputError("actor is required for payroll runs")

        period = PayPeriod.from_value(pay_period)
        summary = self.calculate_summary(employee, period, tax_year)

        advances: list[InterOrganizationAdvance] = []
        for allocation, result in zip(employee.allocations, summary.allocations):
            advance = self._engine.resolve_inter_organization_advance(employee, allocation, result, period, actor=actor)
            if advance is not None:
                advances.append(advance)

        run = EmployeePayrollRun(
            employee_ref=employee.employee_ref,
            pay_period=period.label,
            summary=summary,
            advances=advances,
        )
        if not save:
            return run

        advances_by_allocation = {advance.allocation_id: advance for advance in advances}
        payroll_ids: list[str] = []
        advance_ids: list[str] = []
        with self._repository.transaction():
            for result in summary.allocations:
                payroll_id = self._repository.next_payroll_id()
                self._repository.add_payroll(
                    PayrollRecord(
                        payroll_id=payroll_id,
                        employee_ref=employee.employee_ref,
                        pay_period_date=period.reference_date,
                        calculation=result,
                        created_by=actor,
                        updated_by=actor,
                    )
                )
                payroll_ids.append(payroll_id)

                advance = advances_by_allocation.get(result.allocation_id)
                if advance is None:
                    continue
                advance_id = self._repository.next_advance_id()
                self._repository.add_advance(
                    AdvanceRecord(
                        advance_id=advance_id,
                        payroll_id=payroll_id,
                        advance_date=period.reference_date,
                        advance=advance,
                        created_by=actor,
                        updated_by=actor,
                    )
                )
                advance_ids.append(advance_id)

        run.payroll_ids = payroll_ids
        run.advance_ids = advance_ids
        run.saved = True
        logger.info(
            "Stored payroll for %s (%s): %d payrolls, %d advances",
            employee.employee_ref,
            period.label,
            len(payroll_ids),
            len(advance_ids),
        )
        return run

    def process_bulk_payroll(
        self,
        employees: Iterable[EmployeeSnapshot],
        pay_period: PeriodLike,
        *,
        actor: str,
        save: bool = True,
    ) -> BulkPayrollReport:
        period = PayPeriod.from_value(pay_period)
        report = BulkPayrollReport(pay_period=period.label)
        for employee in employees:
            try:
                report.results.append(self.process_employee_payroll(employee, period, actor=actor, save=save))
            except PayrollError as exc:
                logger.error("Payroll failed for %s (%s): %s", employee.employee_ref, period.label, exc)
                report.errors.append(
                    {"employee_ref": employee.employee_ref, "error": type(exc).__name__, "message": str(exc)}
                )
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unexpected payroll failure for %s (%s)", employee.employee_ref, period.label)
                report.errors.append(
                    {"employee_ref": employee.employee_ref, "error": type(exc).__name__, "message": str(exc)}
                )
        return report

    # ------------------------------------------------------------------
    # advances
    # ------------------------------------------------------------------
    def settle_advance(self, advance_id: str, settlement_date: date, *, actor: str) -> AdvanceRecord | None:
        settled = self._repository.settle_advance(advance_id, settlement_date, actor=actor)
        if settled is None:
            logger.warning("Advance %s not found for settlement", advance_id)
        return settled

    # ------------------------------------------------------------------
    # reporting
    # ------------------------------------------------------------------
    def payroll_statistics(self, start: date | None = None, end: date | None = None) -> dict[str, object]:
        payrolls = self._repository.list_payrolls(start, end)
        advances = self._repository.list_advances(start, end)

        by_organization: dict[str, dict[str, object]] = defaultdict(lambda: {"count": 0, "total_amount": ZERO})
        for record in advances:
            bucket = by_organization[record.advance.from_organization]
            bucket["count"] = int(bucket["count"]) + 1  # type: ignore[arg-type]
            bucket["total_amount"] = bucket["total_amount"] + record.advance.amount  # type: ignore[operator]

        def _total(values: Iterable[Decimal]) -> str:
            return str(quantize(sum(values, ZERO)))

        return {
            "period": {
                "start": start.isoformat() if start else None,
                "end": end.isoformat() if end else None,
            },
            "payrolls": {
                "count": len(payrolls),
                "employees": len({record.employee_ref for record in payrolls}),
                "total_income": _total(record.calculation.total_income for record in payrolls),
                "total_deduction": _total(record.calculation.total_deduction for record in payrolls),
                "total_net_salary": _total(record.net_salary for record in payrolls),
                "employer_contribution": _total(record.calculation.employer_contribution for record in payrolls),
            },
            "advances": {
                "count": len(advances),
                "total_amount": _total(record.advance.amount for record in advances),
                "pending": sum(1 for record in advances if not record.is_settled),
                "settled": sum(1 for record in advances if record.is_settled),
                "by_lending_organization": {
                    organization: {"count": bucket["count"], "total_amount": str(quantize(bucket["total_amount"]))}  # type: ignore[arg-type]
                    for organization, bucket in sorted(by_organization.items())
                },
            },
        }


_repository = InMemoryPayrollRepository()
_service: PayrollService | None = None


def get_payroll_service() -> PayrollService:
    """Return the singleton payroll service for the process."""

    global _service
    if _service is None:
        _service = PayrollService(_repository)
    return _service


def reset_payroll_state() -> None:
    """Reset the in-memory store (used in tests)."""

    _repository.reset()
