from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, constr


class ResidencyStatus(str, Enum):
    THAI = "Thai"
    NON_THAI_NO_ID = "NonThaiNoID"
    EXPAT = "Expat"


class AllocationType(str, Enum):
    GRANT = "Grant"
    ORGANIZATION = "Organization"


class PayPeriod(BaseModel):
    """Calendar month identified by any date within it."""

    model_config = ConfigDict(frozen=True)

    reference_date: date

    @classmethod
    def from_value(cls, value: "PayPeriod | date | str") -> "PayPeriod":
        if isinstance(value, PayPeriod):
            return value
        if isinstance(value, date):
            return cls(reference_date=value)
        from payroll_engine.core.validation import PayrollInputError

        raw = str(value).strip()
        if len(raw) == 7:
            raw = f"{raw}-01"
        try:
            return cls(reference_date=date.fromisoformat(raw))
        except ValueError as exc:
            raise PayrollInputError(f"invalid pay period {value!r}: {exc}") from exc

    @property
    def year(self) -> int:
        return self.reference_date.year

    @property
    def month(self) -> int:
        return self.reference_date.month

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def start(self) -> date:
        return self.reference_date.replace(day=1)

    @property
    def end(self) -> date:
        return self.reference_date.replace(day=self.days_in_month)

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end


class EmploymentProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_date: date
    probation_pass_date: date | None = None
    probation_salary: Decimal | None = None
    base_salary: Decimal
    position_ref: str | None = None
    position_title: str | None = None
    department_ref: str | None = None
    health_welfare_enabled: bool = False


class EmployeeTaxProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_spouse: bool = False
    dependent_children_count: int = Field(default=0, ge=0)
    eligible_parents_count: int = Field(default=0, ge=0, le=4)
    residency_status: ResidencyStatus = ResidencyStatus.THAI
    months_working_this_year: int | None = Field(default=None, ge=1, le=12)


class FundingAllocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    fte: Decimal
    allocation_type: AllocationType
    home_organization: str
    funding_organization: str
    funding_source_name: str | None = None
    grant_ref: str | None = None


class EmployeeSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    employee_ref: str
    home_organization: str
    employment: EmploymentProfile | None = None
    tax_profile: EmployeeTaxProfile = Field(default_factory=EmployeeTaxProfile)
    allocations: list[FundingAllocation] = Field(default_factory=list)


class ServicePeriod(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_months: int
    full_years: int
    remaining_months: int


class SalaryBreakdown(BaseModel):
    """Audit trail of how the period's gross salary was derived."""

    model_config = ConfigDict(frozen=True)

    method: Literal["position_rate", "probation_rate", "probation_transition"]
    days_in_month: int
    probation_days: int = 0
    position_days: int = 0
    probation_amount: Decimal = Decimal("0")
    position_amount: Decimal = Decimal("0")
    gross_salary: Decimal


class PVDContribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    employee: Decimal = Decimal("0")
    employer: Decimal = Decimal("0")
    saving_fund: Decimal = Decimal("0")


class EmployeeEmployerSplit(BaseModel):
    model_config = ConfigDict(frozen=True)

    employee: Decimal = Decimal("0")
    employer: Decimal = Decimal("0")


class AllowanceLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    amount: Decimal
    applied: bool
    reason: str


class TaxBracketLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_income: Decimal
    max_income: Decimal | None
    rate: Decimal
    taxable_in_bracket: Decimal
    tax_amount: Decimal


class TaxCalculation(BaseModel):
    model_config = ConfigDict(frozen=True)

    tax_year: int
    monthly_income: Decimal
    months_working: int
    annual_income: Decimal
    employment_deduction: Decimal
    allowances: list[AllowanceLine] = Field(default_factory=list)
    allowances_total: Decimal
    social_security_monthly: Decimal
    social_security_annual: Decimal
    provident_fund_annual: Decimal
    total_deductions: Decimal
    taxable_income: Decimal
    brackets: list[TaxBracketLine] = Field(default_factory=list)
    annual_tax: Decimal
    monthly_tax_amount: Decimal


class AllocationCalculation(BaseModel):
    model_config = ConfigDict(frozen=True)

    allocation_id: str
    pay_period: str
    gross_salary: Decimal
    annual_increase: Decimal
    adjusted_gross_salary: Decimal
    gross_salary_by_fte: Decimal
    compensation_refund: Decimal
    thirteen_month_salary: Decimal
    pvd_employee: Decimal
    pvd_employer: Decimal
    saving_fund: Decimal
    social_security_employee: Decimal
    social_security_employer: Decimal
    health_welfare_employee: Decimal
    health_welfare_employer: Decimal
    income_tax: Decimal
    total_income: Decimal
    total_deduction: Decimal
    net_salary: Decimal
    employer_contribution: Decimal
    total_salary: Decimal
    salary_breakdown: SalaryBreakdown
    service_period: ServicePeriod


# Monetary fields summed across allocations by the summary aggregator.
SUMMED_FIELDS: tuple[str, ...] = (
    "gross_salary",
    "annual_increase",
    "adjusted_gross_salary",
    "gross_salary_by_fte",
    "compensation_refund",
    "thirteen_month_salary",
    "pvd_employee",
    "pvd_employer",
    "saving_fund",
    "social_security_employee",
    "social_security_employer",
    "health_welfare_employee",
    "health_welfare_employer",
    "income_tax",
    "total_income",
    "total_deduction",
    "net_salary",
    "employer_contribution",
    "total_salary",
)


class PayrollSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    employee_ref: str
    pay_period: str
    allocation_count: int
    gross_salary: Decimal = Decimal("0")
    annual_increase: Decimal = Decimal("0")
    adjusted_gross_salary: Decimal = Decimal("0")
    gross_salary_by_fte: Decimal = Decimal("0")
    compensation_refund: Decimal = Decimal("0")
    thirteen_month_salary: Decimal = Decimal("0")
    pvd_employee: Decimal = Decimal("0")
    pvd_employer: Decimal = Decimal("0")
    saving_fund: Decimal = Decimal("0")
    social_security_employee: Decimal = Decimal("0")
    social_security_employer: Decimal = Decimal("0")
    health_welfare_employee: Decimal = Decimal("0")
    health_welfare_employer: Decimal = Decimal("0")
    income_tax: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    total_deduction: Decimal = Decimal("0")
    net_salary: Decimal = Decimal("0")
    employer_contribution: Decimal = Decimal("0")
    total_salary: Decimal = Decimal("0")
    allocations: list[AllocationCalculation] = Field(default_factory=list)


class InterOrganizationAdvance(BaseModel):
    model_config = ConfigDict(frozen=True)

    allocation_id: str
    from_organization: str
    to_organization: str
    via_grant_ref: str
    amount: Decimal
    pay_period: str
    created_by: str
    notes: str | None = None


class AdvancePreview(BaseModel):
    model_config = ConfigDict(frozen=True)

    allocation_id: str
    allocation_type: AllocationType
    fte: Decimal
    from_organization: str
    to_organization: str
    via_grant_ref: str
    funding_source_name: str | None = None
    estimated_amount: Decimal
    pay_period: str


class PayrollRequest(BaseModel):
    employee: EmployeeSnapshot
    pay_period: constr(pattern=r"^\d{4}-\d{2}(-\d{2})?$")
    tax_year: int | None = None


class AllocationPayrollRequest(PayrollRequest):
    allocation_id: str


class ProcessPayrollRequest(PayrollRequest):
    actor: str | None = None
    save: bool = True


class BulkPayrollRequest(BaseModel):
    employees: list[EmployeeSnapshot]
    pay_period: constr(pattern=r"^\d{4}-\d{2}(-\d{2})?$")
    actor: str | None = None
    save: bool = True


class SettleAdvanceRequest(BaseModel):
    settlement_date: date
    actor: str | None = None
