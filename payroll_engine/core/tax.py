"""Personal income tax withholding.

The monthly salary is annualised over the months worked in the tax year, the
employment deduction and personal allowances are applied first, then social
security and provident fund contributions, and the remaining taxable income
runs through the progressive bracket table of the requested tax year. The
result is deterministic for a given (salary, profile, tax year) and is never
negative.
"""
from __future__ import annotations

from decimal import Decimal

from payroll_engine.core.config import PayrollConfig, TaxYearTable
from payroll_engine.core.money import ZERO, percent, quantize
from payroll_engine.core.schema import (
    AllowanceLine,
    EmployeeTaxProfile,
    ResidencyStatus,
    TaxBracketLine,
    TaxCalculation,
)
from payroll_engine.core.validation import PayrollInputError, ensure_non_negative

MONTHS_PER_YEAR = 12


class TaxCalculationService:
    def __init__(self, config: PayrollConfig) -> None:
        self._config = config

    def calculate(
        self,
        monthly_salary: Decimal,
        profile: EmployeeTaxProfile,
        tax_year: int,
        *,
        months_working: int | None = None,
    ) -> TaxCalculation:
        if monthly_salary < 0:
            raise PayrollInputError("monthly salary for tax calculation cannot be negative")
        table = self._config.tax_table(tax_year)

        months = profile.months_working_this_year or months_working or MONTHS_PER_YEAR
        annual_income = monthly_salary * months

        employment_deduction = min(
            percent(annual_income, table.employment_deduction_rate), table.employment_deduction_max
        )
        allowances = self._allowances(table, profile)
        allowances_total = sum((line.amount for line in allowances), ZERO)

        social_security_monthly = min(
            percent(monthly_salary, table.social_security_rate), table.social_security_max_monthly
        )
        social_security_annual = social_security_monthly * MONTHS_PER_YEAR

        fund_rate = table.provident_fund_rate
        if profile.residency_status == ResidencyStatus.NON_THAI_NO_ID:
            fund_rate += table.saving_fund_rate
        provident_fund_annual = min(percent(annual_income, fund_rate), table.provident_fund_max)

        total_deductions = employment_deduction + allowances_total + social_security_annual + provident_fund_annual
        taxable_income = max(ZERO, annual_income - total_deductions)

        brackets, annual_tax = self._progressive_tax(table, taxable_income)
        monthly_tax = ensure_non_negative("monthly_tax_amount", quantize(annual_tax / MONTHS_PER_YEAR))

        return TaxCalculation(
            tax_year=tax_year,
            monthly_income=quantize(monthly_salary),
            months_working=months,
            annual_income=quantize(annual_income),
            employment_deduction=quantize(employment_deduction),
            allowances=allowances,
            allowances_total=quantize(allowances_total),
            social_security_monthly=quantize(social_security_monthly),
            social_security_annual=quantize(social_security_annual),
            provident_fund_annual=quantize(provident_fund_annual),
            total_deductions=quantize(total_deductions),
            taxable_income=quantize(taxable_income),
            brackets=brackets,
            annual_tax=quantize(annual_tax),
            monthly_tax_amount=monthly_tax,
        )

    def progressive_tax(self, taxable_income: Decimal, tax_year: int) -> Decimal:
        """Annual tax owed on ``taxable_income`` for ``tax_year``."""

        _, annual_tax = self._progressive_tax(self._config.tax_table(tax_year), taxable_income)
        return quantize(annual_tax)

    @staticmethod
    def _allowances(table: TaxYearTable, profile: EmployeeTaxProfile) -> list[AllowanceLine]:
        children = profile.dependent_children_count
        parents = profile.eligible_parents_count
        subsequent = max(children - 1, 0)
        return [
            AllowanceLine(
                key="personal",
                amount=table.personal_allowance,
                applied=True,
                reason="applied to all employees",
            ),
            AllowanceLine(
                key="spouse",
                amount=table.spouse_allowance if profile.has_spouse else ZERO,
                applied=profile.has_spouse,
                reason="married" if profile.has_spouse else "no spouse",
            ),
            AllowanceLine(
                key="first_child",
                amount=table.first_child_allowance if children > 0 else ZERO,
                applied=children > 0,
                reason=f"{children} dependent children" if children else "no children",
            ),
            AllowanceLine(
                key="subsequent_children",
                amount=table.subsequent_child_allowance * subsequent,
                applied=subsequent > 0,
                reason=f"{subsequent} subsequent children",
            ),
            AllowanceLine(
                key="parents",
                amount=table.parent_allowance * parents,
                applied=parents > 0,
                reason=f"{parents} eligible parents",
            ),
        ]

    @staticmethod
    def _progressive_tax(table: TaxYearTable, taxable_income: Decimal) -> tuple[list[TaxBracketLine], Decimal]:
        lines: list[TaxBracketLine] = []
        total = ZERO
        processed = ZERO
        for bracket in table.brackets:
            if processed >= taxable_income:
                break
            if taxable_income <= bracket.min_income:
                continue
            remaining = taxable_income - processed
            if bracket.max_income is None:
                in_bracket = remaining
            else:
                in_bracket = min(remaining, bracket.max_income - bracket.min_income)
            if in_bracket <= 0:
                continue
            tax = percent(in_bracket, bracket.rate)
            total += tax
            processed += in_bracket
            lines.append(
                TaxBracketLine(
                    min_income=bracket.min_income,
                    max_income=bracket.max_income,
                    rate=bracket.rate,
                    taxable_in_bracket=quantize(in_bracket),
                    tax_amount=quantize(tax),
                )
            )
        return lines, total
