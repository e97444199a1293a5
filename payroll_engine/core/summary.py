from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from payroll_engine.core.money import ZERO
from payroll_engine.core.schema import SUMMED_FIELDS, AllocationCalculation, PayrollSummary
from payroll_engine.core.validation import PayrollInputError


class PayrollSummaryAggregator:
    def aggregate(self, employee_ref: str, calculations: Iterable[AllocationCalculation]) -> PayrollSummary:
        rows = list(calculations)
        if not rows:
            raise PayrollInputError(f"no allocation calculations to summarise for employee {employee_ref}")

        periods = {row.pay_period for row in rows}
        if len(periods) > 1:
            raise PayrollInputError(f"allocation calculations span several pay periods: {sorted(periods)}")

        totals: dict[str, Decimal] = {name: ZERO for name in SUMMED_FIELDS}
        for row in rows:
            for name in SUMMED_FIELDS:
                totals[name] += getattr(row, name)

        return PayrollSummary(
            employee_ref=employee_ref,
            pay_period=rows[0].pay_period,
            allocation_count=len(rows),
            allocations=rows,
            **totals,
        )
