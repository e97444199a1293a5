import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from payroll_engine.core.config import load_payroll_config
from payroll_engine.core.salary import (
    AnnualIncreaseCalculator,
    CompensationRefundCalculator,
    ProRatedSalaryCalculator,
    ThirteenthMonthCalculator,
)
from payroll_engine.core.schema import EmploymentProfile, PayPeriod
from payroll_engine.core.service_period import ServicePeriodCalculator

APRIL = PayPeriod.from_value("2025-04")
MARCH = PayPeriod.from_value("2025-03-01")


def _employment(**overrides) -> EmploymentProfile:
    data = {"start_date": date(2024, 1, 1), "base_salary": Decimal("50000")}
    data.update(overrides)
    return EmploymentProfile(**data)


@pytest.fixture(scope="module")
def increase_calculator():
    config = load_payroll_config()
    return AnnualIncreaseCalculator(config.position_tiers, config.annual_increase_rate)


def _increase(calculator, employment, period):
    service = ServicePeriodCalculator().calculate(employment.start_date, period.reference_date)
    return calculator.calculate(employment, period, service)


def test_prorated_uses_position_rate_without_probation():
    breakdown = ProRatedSalaryCalculator().calculate(_employment(), APRIL)

    assert breakdown.method == "position_rate"
    assert breakdown.gross_salary == Decimal("50000.00")
    assert breakdown.position_days == 30


def test_prorated_uses_probation_rate_until_pass_date():
    employment = _employment(probation_pass_date=date(2025, 5, 3), probation_salary=Decimal("40000"))
    breakdown = ProRatedSalaryCalculator().calculate(employment, APRIL)

    assert breakdown.method == "probation_rate"
    assert breakdown.gross_salary == Decimal("40000.00")


def test_prorated_blends_rates_in_transition_month():
    employment = _employment(probation_pass_date=date(2025, 4, 16), probation_salary=Decimal("40000"))
    breakdown = ProRatedSalaryCalculator().calculate(employment, APRIL)

    assert breakdown.method == "probation_transition"
    assert breakdown.probation_days == 15
    assert breakdown.position_days == 15
    assert breakdown.probation_amount == Decimal("20000.00")
    assert breakdown.position_amount == Decimal("25000.00")
    assert breakdown.gross_salary == Decimal("45000.00")


def test_prorated_falls_back_to_base_salary_without_probation_salary():
    employment = _employment(probation_pass_date=date(2025, 6, 1))
    breakdown = ProRatedSalaryCalculator().calculate(employment, APRIL)

    assert breakdown.gross_salary == Decimal("50000.00")


def test_annual_increase_is_one_percent_after_a_full_year(increase_calculator):
    assert _increase(increase_calculator, _employment(), MARCH) == Decimal("500.00")


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Senior Engineer", Decimal("8000.00")),
        ("Project Manager", Decimal("15000.00")),
        ("Intern", Decimal("3000.00")),
        (None, Decimal("5000.00")),
    ],
)
def test_annual_increase_is_capped_by_position_tier(increase_calculator, title, expected):
    employment = _employment(base_salary=Decimal("2000000"), position_title=title)

    assert _increase(increase_calculator, employment, MARCH) == expected


def test_annual_increase_prorated_in_first_year(increase_calculator):
    employment = _employment(start_date=date(2024, 6, 1))

    assert _increase(increase_calculator, employment, MARCH) == Decimal("375.00")


def test_annual_increase_zero_when_not_eligible(increase_calculator):
    assert _increase(increase_calculator, _employment(start_date=date(2024, 11, 1)), MARCH) == Decimal("0")
    in_probation = _employment(probation_pass_date=date(2025, 6, 1))
    assert _increase(increase_calculator, in_probation, MARCH) == Decimal("0")


def test_compensation_refund_for_mid_month_start():
    employment = _employment(start_date=date(2025, 4, 11))

    refund = CompensationRefundCalculator().calculate(employment, APRIL, Decimal("30000"))

    assert refund == Decimal("-10000.00")


def test_compensation_refund_zero_for_first_day_or_other_month():
    calculator = CompensationRefundCalculator()

    assert calculator.calculate(_employment(start_date=date(2025, 4, 1)), APRIL, Decimal("30000")) == Decimal("0")
    assert calculator.calculate(_employment(start_date=date(2025, 3, 11)), APRIL, Decimal("30000")) == Decimal("0")


def test_thirteenth_month_accrues_a_twelfth_once_eligible():
    calculator = ThirteenthMonthCalculator()
    service_calculator = ServicePeriodCalculator()

    for start in (date(2024, 1, 1), date(2024, 6, 1)):
        employment = _employment(start_date=start)
        service = service_calculator.calculate(start, MARCH.reference_date)
        assert calculator.calculate(employment, MARCH, service, Decimal("50000")) == Decimal("4166.67")

    recent = _employment(start_date=date(2025, 1, 1))
    service = service_calculator.calculate(recent.start_date, MARCH.reference_date)
    assert calculator.calculate(recent, MARCH, service, Decimal("50000")) == Decimal("0")


def test_probation_passing_on_last_day_leaves_one_position_day():
    employment = _employment(probation_pass_date=date(2025, 4, 30), probation_salary=Decimal("40000"))
    breakdown = ProRatedSalaryCalculator().calculate(employment, APRIL)

    assert breakdown.position_days == 1
    assert breakdown.probation_days == 29
