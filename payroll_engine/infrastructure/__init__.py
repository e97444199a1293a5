"""Infrastructure layer exports."""

from .payroll_store import InMemoryPayrollRepository, PayrollRepository

__all__ = [
    "InMemoryPayrollRepository",
    "PayrollRepository",
]
