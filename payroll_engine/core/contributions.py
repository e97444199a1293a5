from __future__ import annotations

from decimal import Decimal

from payroll_engine.core.config import ContributionRates
from payroll_engine.core.money import ZERO, percent, quantize
from payroll_engine.core.schema import (
    EmployeeEmployerSplit,
    EmploymentProfile,
    PVDContribution,
    ResidencyStatus,
)
from payroll_engine.core.validation import ensure_non_negative


class ProvidentFundCalculator:
    def __init__(self, rates: ContributionRates) -> None:
        self._rates = rates

    def calculate(self, monthly_salary: Decimal, residency_status: ResidencyStatus) -> PVDContribution:
        ensure_non_negative("monthly_salary", monthly_salary)
        saving_fund = ZERO
        if residency_status == ResidencyStatus.NON_THAI_NO_ID:
            saving_fund = quantize(percent(monthly_salary, self._rates.saving_fund_rate))
        return PVDContribution(
            employee=quantize(percent(monthly_salary, self._rates.pvd_employee_rate)),
            employer=quantize(percent(monthly_salary, self._rates.pvd_employer_rate)),
            saving_fund=saving_fund,
        )


class SocialSecurityCalculator:
    def __init__(self, rates: ContributionRates) -> None:
        self._rates = rates

    def monthly_contribution(self, monthly_salary: Decimal) -> Decimal:
        ensure_non_negative("monthly_salary", monthly_salary)
        contribution = percent(monthly_salary, self._rates.social_security_rate)
        return quantize(min(contribution, self._rates.social_security_max_monthly))

    def calculate(self, monthly_salary: Decimal) -> EmployeeEmployerSplit:
        contribution = self.monthly_contribution(monthly_salary)
        return EmployeeEmployerSplit(employee=contribution, employer=contribution)


class HealthWelfareCalculator:
    """Health/welfare deduction; rates come from configuration and default to 0%."""

    def __init__(self, rates: ContributionRates) -> None:
        self._rates = rates

    def calculate(self, employment: EmploymentProfile, monthly_salary: Decimal) -> EmployeeEmployerSplit:
        if not employment.health_welfare_enabled:
            return EmployeeEmployerSplit()
        ensure_non_negative("monthly_salary", monthly_salary)
        return EmployeeEmployerSplit(
            employee=quantize(percent(monthly_salary, self._rates.health_welfare_employee_rate)),
            employer=quantize(percent(monthly_salary, self._rates.health_welfare_employer_rate)),
        )
