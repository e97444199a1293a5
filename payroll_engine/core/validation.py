from __future__ import annotations

from decimal import Decimal

from payroll_engine.core.schema import EmployeeSnapshot, EmploymentProfile, FundingAllocation, PayPeriod


class PayrollError(Exception):
    """Base class for payroll calculation failures."""


class PayrollInputError(PayrollError):
    """Raised when the supplied snapshots cannot be calculated."""


class ConfigurationError(PayrollError):
    """Raised when required configuration (tax year, hub grant) is missing."""


class ArithmeticInvariantViolation(PayrollError):
    """Raised when a calculated amount breaks a payroll invariant."""


def validate_employment(employment: EmploymentProfile | None, pay_period: PayPeriod) -> EmploymentProfile:
    if employment is None:
        raise PayrollInputError("employee has no active employment record")
    if employment.base_salary < 0:
        raise PayrollInputError("base_salary cannot be negative")
    if employment.probation_salary is not None and employment.probation_salary < 0:
        raise PayrollInputError("probation_salary cannot be negative")
    if employment.start_date > pay_period.end:
        raise PayrollInputError(
            f"employment starts on {employment.start_date.isoformat()}, after pay period {pay_period.label}"
        )
    if employment.probation_pass_date is not None and employment.probation_pass_date < employment.start_date:
        raise PayrollInputError("probation_pass_date precedes start_date")
    return employment


def validate_allocation(allocation: FundingAllocation | None) -> FundingAllocation:
    if allocation is None:
        raise PayrollInputError("funding allocation is missing")
    if allocation.fte <= 0 or allocation.fte > 1:
        raise PayrollInputError(f"allocation {allocation.id} fte must be in (0, 1], got {allocation.fte}")
    return allocation


def validate_allocations(allocations: list[FundingAllocation]) -> list[FundingAllocation]:
    if not allocations:
        raise PayrollInputError("employee has no active funding allocations")
    return [validate_allocation(allocation) for allocation in allocations]


def validate_employee(employee: EmployeeSnapshot, pay_period: PayPeriod) -> EmploymentProfile:
    return validate_employment(employee.employment, pay_period)


def ensure_non_negative(name: str, value: Decimal) -> Decimal:
    if value < 0:
        raise ArithmeticInvariantViolation(f"{name} must not be negative, got {value}")
    return value
