from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from payroll_engine.core.config import PayrollConfig
from payroll_engine.core.contributions import (
    HealthWelfareCalculator,
    ProvidentFundCalculator,
    SocialSecurityCalculator,
)
from payroll_engine.core.money import quantize
from payroll_engine.core.salary import (
    AnnualIncreaseCalculator,
    CompensationRefundCalculator,
    ProRatedSalaryCalculator,
    ThirteenthMonthCalculator,
)
from payroll_engine.core.schema import (
    AllocationCalculation,
    EmployeeTaxProfile,
    EmploymentProfile,
    FundingAllocation,
    PayPeriod,
    SalaryBreakdown,
    ServicePeriod,
)
from payroll_engine.core.service_period import ServicePeriodCalculator
from payroll_engine.core.tax import TaxCalculationService
from payroll_engine.core.validation import (
    ArithmeticInvariantViolation,
    ensure_non_negative,
    validate_allocation,
    validate_employment,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdjustedSalary:
    breakdown: SalaryBreakdown
    service: ServicePeriod
    annual_increase: Decimal
    adjusted_gross_salary: Decimal


class AllocationPayrollCalculator:
    """Run every salary, contribution and tax rule for one funding allocation.

    Each monetary value is rounded to two decimals where it is produced and the
    rounded value feeds the next step.
    """

    def __init__(self, config: PayrollConfig) -> None:
        self._service = ServicePeriodCalculator()
        self._prorated = ProRatedSalaryCalculator()
        self._increase = AnnualIncreaseCalculator(config.position_tiers, config.annual_increase_rate, self._service)
        self._refund = CompensationRefundCalculator()
        self._thirteenth = ThirteenthMonthCalculator(self._service)
        self._pvd = ProvidentFundCalculator(config.contributions)
        self._social_security = SocialSecurityCalculator(config.contributions)
        self._health_welfare = HealthWelfareCalculator(config.contributions)
        self._tax = TaxCalculationService(config)

    def adjusted_salary(self, employment: EmploymentProfile, pay_period: PayPeriod) -> AdjustedSalary:
        breakdown = self._prorated.calculate(employment, pay_period)
        service = self._service.calculate(employment.start_date, pay_period.reference_date)
        increase = self._increase.calculate(employment, pay_period, service)
        return AdjustedSalary(
            breakdown=breakdown,
            service=service,
            annual_increase=increase,
            adjusted_gross_salary=quantize(breakdown.gross_salary + increase),
        )

    def calculate(
        self,
        employment: EmploymentProfile | None,
        allocation: FundingAllocation | None,
        pay_period: PayPeriod,
        tax_profile: EmployeeTaxProfile,
        tax_year: int | None = None,
    ) -> AllocationCalculation:
        employment = validate_employment(employment, pay_period)
        allocation = validate_allocation(allocation)
        tax_year = tax_year or pay_period.year

        salary = self.adjusted_salary(employment, pay_period)
        salary_by_fte = quantize(salary.adjusted_gross_salary * allocation.fte)
        compensation = self._refund.calculate(employment, pay_period, salary_by_fte)
        thirteenth = self._thirteenth.calculate(employment, pay_period, salary.service, salary_by_fte)

        pvd = self._pvd.calculate(salary_by_fte, tax_profile.residency_status)
        social_security = self._social_security.calculate(salary_by_fte)
        health_welfare = self._health_welfare.calculate(employment, salary_by_fte)

        months_working = ServicePeriodCalculator.months_working_in_year(employment.start_date, tax_year)
        tax = self._tax.calculate(salary_by_fte, tax_profile, tax_year, months_working=months_working)
        income_tax = tax.monthly_tax_amount

        total_income = quantize(salary_by_fte + compensation + thirteenth)
        total_deduction = quantize(
            pvd.employee + pvd.saving_fund + social_security.employee + health_welfare.employee + income_tax
        )
        net_salary = quantize(total_income - total_deduction)
        employer_contribution = quantize(pvd.employer + social_security.employer + health_welfare.employer)

        ensure_non_negative("total_deduction", total_deduction)
        ensure_non_negative("employer_contribution", employer_contribution)
        if net_salary < 0:
            raise ArithmeticInvariantViolation(
                f"allocation {allocation.id}: deductions {total_deduction} exceed income {total_income}"
            )

        logger.debug(
            "allocation %s %s: gross_by_fte=%s tax=%s net=%s",
            allocation.id,
            pay_period.label,
            salary_by_fte,
            income_tax,
            net_salary,
        )

        return AllocationCalculation(
            allocation_id=allocation.id,
            pay_period=pay_period.label,
            gross_salary=salary.breakdown.gross_salary,
            annual_increase=salary.annual_increase,
            adjusted_gross_salary=salary.adjusted_gross_salary,
            gross_salary_by_fte=salary_by_fte,
            compensation_refund=compensation,
            thirteen_month_salary=thirteenth,
            pvd_employee=pvd.employee,
            pvd_employer=pvd.employer,
            saving_fund=pvd.saving_fund,
            social_security_employee=social_security.employee,
            social_security_employer=social_security.employer,
            health_welfare_employee=health_welfare.employee,
            health_welfare_employer=health_welfare.employer,
            income_tax=income_tax,
            total_income=total_income,
            total_deduction=total_deduction,
            net_salary=net_salary,
            employer_contribution=employer_contribution,
            total_salary=quantize(total_income + employer_contribution),
            salary_breakdown=salary.breakdown,
            service_period=salary.service,
        )
