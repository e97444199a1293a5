import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from payroll_engine.core.schema import EmploymentProfile
from payroll_engine.core.service_period import ServicePeriodCalculator, whole_months_between


def _employment(start: date, pass_date: date | None = None) -> EmploymentProfile:
    return EmploymentProfile(start_date=start, probation_pass_date=pass_date, base_salary=Decimal("50000"))


def test_whole_months_require_reaching_the_start_day():
    assert whole_months_between(date(2025, 1, 15), date(2025, 4, 14)) == 2
    assert whole_months_between(date(2025, 1, 15), date(2025, 4, 15)) == 3


def test_whole_months_count_short_month_end_as_complete():
    assert whole_months_between(date(2025, 1, 31), date(2025, 2, 28)) == 1


def test_whole_months_zero_when_reference_not_after_start():
    assert whole_months_between(date(2025, 4, 10), date(2025, 4, 1)) == 0
    assert whole_months_between(date(2025, 4, 10), date(2025, 4, 10)) == 0


def test_service_period_splits_years_and_months():
    service = ServicePeriodCalculator().calculate(date(2023, 1, 1), date(2025, 4, 1))

    assert service.total_months == 27
    assert service.full_years == 2
    assert service.remaining_months == 3


def test_eligibility_needs_six_months_and_passed_probation():
    calculator = ServicePeriodCalculator()
    reference = date(2025, 3, 1)

    assert not calculator.eligible_for_annual_increase(_employment(date(2024, 10, 1)), reference)
    assert calculator.eligible_for_annual_increase(_employment(date(2024, 9, 1)), reference)
    assert not calculator.eligible_for_annual_increase(
        _employment(date(2024, 1, 1), pass_date=date(2025, 6, 1)), reference
    )
    assert calculator.eligible_for_thirteenth_month(_employment(date(2024, 1, 1), pass_date=date(2024, 4, 1)), reference)


def test_months_working_in_year():
    assert ServicePeriodCalculator.months_working_in_year(date(2025, 4, 10), 2025) == 9
    assert ServicePeriodCalculator.months_working_in_year(date(2025, 1, 1), 2025) == 12
    assert ServicePeriodCalculator.months_working_in_year(date(2019, 8, 1), 2025) == 12
