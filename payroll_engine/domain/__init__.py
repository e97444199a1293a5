"""Domain layer definitions."""

from .payroll_runs import AdvanceRecord, PayrollRecord

__all__ = [
    "AdvanceRecord",
    "PayrollRecord",
]
