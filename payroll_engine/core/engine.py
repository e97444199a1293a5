"""Public calculation surface of the payroll engine.

The engine only holds the immutable configuration it was built with, so a
single instance can be shared between threads. Nothing here performs I/O;
persisting results is the caller's responsibility.
"""
from __future__ import annotations

from datetime import date
from typing import Iterable

from payroll_engine.core.advances import InterOrganizationAdvanceResolver
from payroll_engine.core.allocation import AllocationPayrollCalculator
from payroll_engine.core.config import PayrollConfig, load_payroll_config
from payroll_engine.core.schema import (
    AdvancePreview,
    AllocationCalculation,
    EmployeeSnapshot,
    EmployeeTaxProfile,
    EmploymentProfile,
    FundingAllocation,
    InterOrganizationAdvance,
    PayPeriod,
    PayrollSummary,
)
from payroll_engine.core.summary import PayrollSummaryAggregator
from payroll_engine.core.validation import validate_allocations, validate_employee

PeriodLike = PayPeriod | date | str


class PayrollEngine:
    def __init__(self, config: PayrollConfig | None = None) -> None:
        self.config = config or load_payroll_config()
        self._calculator = AllocationPayrollCalculator(self.config)
        self._aggregator = PayrollSummaryAggregator()
        self._advances = InterOrganizationAdvanceResolver(self.config, self._calculator)

    def calculate_allocation_payroll(
        self,
        employment: EmploymentProfile | None,
        allocation: FundingAllocation | None,
        pay_period: PeriodLike,
        tax_profile: EmployeeTaxProfile,
        tax_year: int | None = None,
    ) -> AllocationCalculation:
        period = PayPeriod.from_value(pay_period)
        return self._calculator.calculate(employment, allocation, period, tax_profile, tax_year)

    def calculate_employee_payroll_summary(
        self,
        employee: EmployeeSnapshot,
        allocations: Iterable[FundingAllocation],
        pay_period: PeriodLike,
        tax_year: int | None = None,
    ) -> PayrollSummary:
        period = PayPeriod.from_value(pay_period)
        employment = validate_employee(employee, period)
        rows = [
            self._calculator.calculate(employment, allocation, period, employee.tax_profile, tax_year)
            for allocation in validate_allocations(list(allocations))
        ]
        return self._aggregator.aggregate(employee.employee_ref, rows)

    def resolve_inter_organization_advance(
        self,
        employee: EmployeeSnapshot,
        allocation: FundingAllocation,
        payroll_result: AllocationCalculation,
        pay_period: PeriodLike,
        *,
        actor: str,
    ) -> InterOrganizationAdvance | None:
        return self._advances.resolve(
            employee, allocation, payroll_result, PayPeriod.from_value(pay_period), actor=actor
        )

    def preview_inter_organization_advances(
        self, employee: EmployeeSnapshot, pay_period: PeriodLike
    ) -> list[AdvancePreview]:
        return self._advances.preview(employee, PayPeriod.from_value(pay_period))
