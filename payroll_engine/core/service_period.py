from __future__ import annotations

import calendar
from datetime import date

from payroll_engine.core.schema import EmploymentProfile, ServicePeriod

ELIGIBILITY_MONTHS = 6


def _is_month_end(value: date) -> bool:
    return value.day == calendar.monthrange(value.year, value.month)[1]


def whole_months_between(start: date, reference: date) -> int:
    """Count complete calendar months from ``start`` up to ``reference``.

    A month is complete once the reference day reaches the start day, or the
    reference falls on the last day of a shorter month.
    """

    if reference <= start:
        return 0
    months = (reference.year - start.year) * 12 + (reference.month - start.month)
    if reference.day < start.day and not _is_month_end(reference):
        months -= 1
    return max(months, 0)


class ServicePeriodCalculator:
    """Tenure and eligibility windows relative to a pay-period date."""

    def calculate(self, start_date: date, reference: date) -> ServicePeriod:
        total = whole_months_between(start_date, reference)
        return ServicePeriod(total_months=total, full_years=total // 12, remaining_months=total % 12)

    def eligible_for_annual_increase(
        self, employment: EmploymentProfile, reference: date, service: ServicePeriod | None = None
    ) -> bool:
        service = service or self.calculate(employment.start_date, reference)
        if service.total_months < ELIGIBILITY_MONTHS:
            return False
        return employment.probation_pass_date is None or reference >= employment.probation_pass_date

    def eligible_for_thirteenth_month(
        self, employment: EmploymentProfile, reference: date, service: ServicePeriod | None = None
    ) -> bool:
        # Same rule as the annual increase today; kept separate so the two can diverge.
        service = service or self.calculate(employment.start_date, reference)
        if service.total_months < ELIGIBILITY_MONTHS:
            return False
        return employment.probation_pass_date is None or reference >= employment.probation_pass_date

    @staticmethod
    def months_working_in_year(start_date: date, year: int) -> int:
        if start_date.year == year:
            return 12 - start_date.month + 1
        return 12
