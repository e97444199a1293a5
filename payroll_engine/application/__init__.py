"""Application services."""

from .payroll import (
    BulkPayrollReport,
    EmployeePayrollRun,
    PayrollService,
    get_payroll_service,
    reset_payroll_state,
)

__all__ = [
    "BulkPayrollReport",
    "EmployeePayrollRun",
    "PayrollService",
    "get_payroll_service",
    "reset_payroll_state",
]
