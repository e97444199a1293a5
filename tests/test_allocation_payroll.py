import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from payroll_engine.core.config import ContributionRates, load_payroll_config
from payroll_engine.core.engine import PayrollEngine
from payroll_engine.core.schema import (
    AllocationType,
    EmployeeTaxProfile,
    EmploymentProfile,
    FundingAllocation,
)
from payroll_engine.core.validation import ArithmeticInvariantViolation, PayrollInputError


@pytest.fixture(scope="module")
def engine():
    return PayrollEngine(load_payroll_config())


def _allocation(fte: str = "1", allocation_id: str = "alloc-1") -> FundingAllocation:
    return FundingAllocation(
        id=allocation_id,
        fte=Decimal(fte),
        allocation_type=AllocationType.ORGANIZATION,
        home_organization="SMRU",
        funding_organization="SMRU",
    )


def test_half_time_allocation_after_three_months(engine):
    employment = EmploymentProfile(start_date=date(2025, 1, 1), base_salary=Decimal("50000"))

    result = engine.calculate_allocation_payroll(employment, _allocation("0.5"), "2025-04", EmployeeTaxProfile())

    assert result.pay_period == "2025-04"
    assert result.gross_salary == Decimal("50000.00")
    assert result.annual_increase == Decimal("0")
    assert result.gross_salary_by_fte == Decimal("25000.00")
    assert result.compensation_refund == Decimal("0")
    assert result.thirteen_month_salary == Decimal("0")
    assert result.pvd_employee == Decimal("750.00")
    assert result.social_security_employee == Decimal("750.00")
    assert result.income_tax == Decimal("0.00")
    assert result.total_deduction == Decimal("1500.00")
    assert result.net_salary == Decimal("23500.00")
    assert result.employer_contribution == Decimal("1500.00")
    assert result.total_salary == Decimal("26500.00")


def test_long_serving_employee_totals_are_consistent(engine):
    employment = EmploymentProfile(start_date=date(2020, 1, 1), base_salary=Decimal("100000"))

    result = engine.calculate_allocation_payroll(employment, _allocation(), date(2025, 3, 1), EmployeeTaxProfile())

    assert result.annual_increase == Decimal("1000.00")
    assert result.adjusted_gross_salary == Decimal("101000.00")
    assert result.thirteen_month_salary == Decimal("8416.67")
    assert result.pvd_employee == Decimal("3030.00")
    assert result.income_tax == Decimal("9721.67")
    assert result.total_income == Decimal("109416.67")
    assert result.total_deduction == Decimal("13501.67")
    assert result.net_salary == Decimal("95915.00")
    assert result.net_salary == result.total_income - result.total_deduction
    assert result.total_deduction == (
        result.pvd_employee
        + result.saving_fund
        + result.social_security_employee
        + result.health_welfare_employee
        + result.income_tax
    )
    assert result.employer_contribution == result.pvd_employer + result.social_security_employer + result.health_welfare_employer
    assert result.service_period.full_years == 5


def test_mid_month_start_gets_compensation_refund(engine):
    employment = EmploymentProfile(start_date=date(2025, 4, 11), base_salary=Decimal("30000"))

    result = engine.calculate_allocation_payroll(employment, _allocation(), "2025-04-01", EmployeeTaxProfile())

    assert result.compensation_refund == Decimal("-10000.00")
    assert result.total_income == Decimal("20000.00")
    assert result.service_period.total_months == 0


def test_missing_employment_is_rejected(engine):
    with pytest.raises(PayrollInputError):
        engine.calculate_allocation_payroll(None, _allocation(), "2025-04", EmployeeTaxProfile())


@pytest.mark.parametrize("fte", ["0", "1.5", "-0.2"])
def test_fte_outside_unit_interval_is_rejected(engine, fte):
    employment = EmploymentProfile(start_date=date(2024, 1, 1), base_salary=Decimal("50000"))

    with pytest.raises(PayrollInputError):
        engine.calculate_allocation_payroll(employment, _allocation(fte), "2025-04", EmployeeTaxProfile())


def test_start_after_pay_period_is_rejected(engine):
    employment = EmploymentProfile(start_date=date(2025, 5, 2), base_salary=Decimal("50000"))

    with pytest.raises(PayrollInputError):
        engine.calculate_allocation_payroll(employment, _allocation(), "2025-04", EmployeeTaxProfile())


def test_deductions_above_income_raise():
    config = load_payroll_config()
    config = replace(config, contributions=ContributionRates(pvd_employee_rate=Decimal("150")))
    employment = EmploymentProfile(start_date=date(2025, 1, 1), base_salary=Decimal("50000"))

    with pytest.raises(ArithmeticInvariantViolation):
        PayrollEngine(config).calculate_allocation_payroll(employment, _allocation(), "2025-04", EmployeeTaxProfile())


@pytest.mark.parametrize("period", ["2025-13", "2025-02-30"])
def test_malformed_pay_period_is_an_input_error(engine, period):
    employment = EmploymentProfile(start_date=date(2024, 1, 1), base_salary=Decimal("50000"))

    with pytest.raises(PayrollInputError):
        engine.calculate_allocation_payroll(employment, _allocation(), period, EmployeeTaxProfile())


def test_shared_engine_gives_same_results_across_threads(engine):
    cases = [
        (
            EmploymentProfile(
                start_date=date(2020 + index % 5, 1 + index % 12, 1 + index % 28),
                base_salary=Decimal(30000 + index * 1750),
                probation_pass_date=date(2025, 4, 1 + index % 30) if index % 3 == 0 else None,
                probation_salary=Decimal("28000") if index % 3 == 0 else None,
            ),
            _allocation(str(Decimal(1 + index % 4) / 4), allocation_id=f"alloc-{index}"),
        )
        for index in range(24)
    ]

    def _run(case):
        employment, allocation = case
        return engine.calculate_allocation_payroll(employment, allocation, "2025-04", EmployeeTaxProfile())

    sequential = [_run(case) for case in cases]
    with ThreadPoolExecutor(max_workers=8) as pool:
        concurrent = list(pool.map(_run, cases))

    assert concurrent == sequential
