"""Salary rules applied before FTE weighting and deductions."""
from __future__ import annotations

from decimal import Decimal

from payroll_engine.core.config import PositionTierCapTable
from payroll_engine.core.money import ZERO, percent, quantize
from payroll_engine.core.schema import EmploymentProfile, PayPeriod, SalaryBreakdown, ServicePeriod
from payroll_engine.core.service_period import ELIGIBILITY_MONTHS, ServicePeriodCalculator

MONTHS_PER_YEAR = Decimal("12")


class ProRatedSalaryCalculator:
    """Blend probation and position rates for the pay period."""

    def calculate(self, employment: EmploymentProfile, pay_period: PayPeriod) -> SalaryBreakdown:
        days = pay_period.days_in_month
        base_salary = employment.base_salary
        probation_salary = employment.probation_salary if employment.probation_salary is not None else base_salary
        pass_date = employment.probation_pass_date

        if pass_date is None or pass_date <= pay_period.start:
            gross = quantize(base_salary)
            return SalaryBreakdown(
                method="position_rate",
                days_in_month=days,
                position_days=days,
                position_amount=gross,
                gross_salary=gross,
            )

        if pass_date > pay_period.end:
            gross = quantize(probation_salary)
            return SalaryBreakdown(
                method="probation_rate",
                days_in_month=days,
                probation_days=days,
                probation_amount=gross,
                gross_salary=gross,
            )

        # The pass date itself is paid at the position rate.
        probation_days = pass_date.day - 1
        position_days = days - probation_days
        probation_amount = probation_salary / days * probation_days
        position_amount = base_salary / days * position_days
        return SalaryBreakdown(
            method="probation_transition",
            days_in_month=days,
            probation_days=probation_days,
            position_days=position_days,
            probation_amount=quantize(probation_amount),
            position_amount=quantize(position_amount),
            gross_salary=quantize(probation_amount + position_amount),
        )


class AnnualIncreaseCalculator:
    def __init__(
        self,
        tiers: PositionTierCapTable,
        rate: Decimal = Decimal("1"),
        service_calculator: ServicePeriodCalculator | None = None,
    ) -> None:
        self._tiers = tiers
        self._rate = rate
        self._service = service_calculator or ServicePeriodCalculator()

    def calculate(self, employment: EmploymentProfile, pay_period: PayPeriod, service: ServicePeriod) -> Decimal:
        reference = pay_period.reference_date
        if not self._service.eligible_for_annual_increase(employment, reference, service):
            return ZERO

        full_increase = percent(employment.base_salary, self._rate)
        if service.full_years < 1:
            if service.remaining_months < ELIGIBILITY_MONTHS:
                return ZERO
            return quantize(full_increase * service.remaining_months / MONTHS_PER_YEAR)

        cap = self._tiers.cap_for(employment.position_title)
        return quantize(min(full_increase, cap))


class CompensationRefundCalculator:
    """Negative adjustment for the unworked part of a mid-month start."""

    def calculate(self, employment: EmploymentProfile, pay_period: PayPeriod, monthly_salary: Decimal) -> Decimal:
        start = employment.start_date
        if not pay_period.contains(start) or start.day <= 1:
            return ZERO

        days = pay_period.days_in_month
        daily_salary = monthly_salary / days
        days_worked = days - start.day + 1
        return quantize(daily_salary * days_worked - monthly_salary)


class ThirteenthMonthCalculator:
    def __init__(self, service_calculator: ServicePeriodCalculator | None = None) -> None:
        self._service = service_calculator or ServicePeriodCalculator()

    def calculate(
        self,
        employment: EmploymentProfile,
        pay_period: PayPeriod,
        service: ServicePeriod,
        monthly_salary: Decimal,
    ) -> Decimal:
        if not self._service.eligible_for_thirteenth_month(employment, pay_period.reference_date, service):
            return ZERO
        # Full-year and 6-12 month tenures accrue the same monthly twelfth.
        if service.full_years >= 1:
            return quantize(monthly_salary / MONTHS_PER_YEAR)
        return quantize(monthly_salary / MONTHS_PER_YEAR)
