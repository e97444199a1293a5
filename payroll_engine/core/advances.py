"""Detection of inter-organization advances.

When a grant owned by one organization pays staff employed by another, the
lending organization advances the salary through its hub grant. One advance
is recorded per grant-funded allocation whose funding organization differs
from the employee's home organization.
"""
from __future__ import annotations

import logging

from payroll_engine.core.allocation import AllocationPayrollCalculator
from payroll_engine.core.config import PayrollConfig
from payroll_engine.core.money import quantize
from payroll_engine.core.schema import (
    AdvancePreview,
    AllocationCalculation,
    AllocationType,
    EmployeeSnapshot,
    FundingAllocation,
    InterOrganizationAdvance,
    PayPeriod,
)
from payroll_engine.core.validation import (
    ConfigurationError,
    PayrollInputError,
    validate_allocations,
    validate_employee,
)

logger = logging.getLogger(__name__)


def requires_advance(employee: EmployeeSnapshot, allocation: FundingAllocation) -> bool:
    return (
        allocation.allocation_type == AllocationType.GRANT
        and allocation.funding_organization != employee.home_organization
    )


class InterOrganizationAdvanceResolver:
    def __init__(self, config: PayrollConfig, calculator: AllocationPayrollCalculator | None = None) -> None:
        self._config = config
        self._calculator = calculator or AllocationPayrollCalculator(config)

    def _hub_grant(self, organization: str, allocation: FundingAllocation) -> str:
        try:
            return self._config.hub_grant_for(organization)
        except ConfigurationError:
            logger.error("Hub grant not found for organization %s (allocation %s)", organization, allocation.id)
            raise

    def resolve(
        self,
        employee: EmployeeSnapshot,
        allocation: FundingAllocation,
        payroll_result: AllocationCalculation,
        pay_period: PayPeriod,
        *,
        actor: str,
    ) -> InterOrganizationAdvance | None:
        if payroll_result.allocation_id != allocation.id:
            raise PayrollInputError(
                f"payroll result belongs to allocation {payroll_result.allocation_id}, not {allocation.id}"
            )
        if not requires_advance(employee, allocation):
            return None

        via_grant = self._hub_grant(allocation.funding_organization, allocation)
        source = allocation.grant_ref or allocation.funding_source_name or allocation.id
        advance = InterOrganizationAdvance(
            allocation_id=allocation.id,
            from_organization=allocation.funding_organization,
            to_organization=employee.home_organization,
            via_grant_ref=via_grant,
            amount=payroll_result.net_salary,
            pay_period=pay_period.label,
            created_by=actor,
            notes=f"Hub grant advance: {source} -> {via_grant} for {employee.employee_ref}",
        )
        logger.info(
            "Inter-organization advance %s -> %s of %s for %s via %s",
            advance.from_organization,
            advance.to_organization,
            advance.amount,
            employee.employee_ref,
            via_grant,
        )
        return advance

    def preview(self, employee: EmployeeSnapshot, pay_period: PayPeriod) -> list[AdvancePreview]:
        """Estimate the advances a payroll run would create, without calculating payroll."""

        employment = validate_employee(employee, pay_period)
        allocations = validate_allocations(list(employee.allocations))
        salary = self._calculator.adjusted_salary(employment, pay_period)

        previews: list[AdvancePreview] = []
        for allocation in allocations:
            if not requires_advance(employee, allocation):
                continue
            previews.append(
                AdvancePreview(
                    allocation_id=allocation.id,
                    allocation_type=allocation.allocation_type,
                    fte=allocation.fte,
                    from_organization=allocation.funding_organization,
                    to_organization=employee.home_organization,
                    via_grant_ref=self._hub_grant(allocation.funding_organization, allocation),
                    funding_source_name=allocation.funding_source_name,
                    estimated_amount=quantize(salary.adjusted_gross_salary * allocation.fte),
                    pay_period=pay_period.label,
                )
            )
        return previews
