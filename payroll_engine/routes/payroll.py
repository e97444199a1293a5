from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Header, HTTPException, Query

from payroll_engine.application import get_payroll_service
from payroll_engine.core.money import ZERO, quantize
from payroll_engine.core.schema import (
    AllocationPayrollRequest,
    BulkPayrollRequest,
    PayrollRequest,
    ProcessPayrollRequest,
    SettleAdvanceRequest,
)
from payroll_engine.core.validation import PayrollError, PayrollInputError

router = APIRouter(prefix="/payroll", tags=["payroll"])


def _to_http(exc: PayrollError) -> HTTPException:
    status = 400 if isinstance(exc, PayrollInputError) else 500
    return HTTPException(status_code=status, detail={"error": type(exc).__name__, "message": str(exc)})


def _resolve_actor(payload_actor: str | None, header_actor: str | None) -> str:
    actor = (payload_actor or header_actor or "").strip()
    if not actor:
        raise HTTPException(status_code=400, detail="actor is required (payload field or X-Actor header)")
    return actor


@router.post("/calculate")
async def calculate_allocation(payload: AllocationPayrollRequest) -> dict:
    allocation = next((item for item in payload.employee.allocations if item.id == payload.allocation_id), None)
    if allocation is None:
        raise HTTPException(status_code=404, detail="allocation not found")
    service = get_payroll_service()
    try:
        result = service.engine.calculate_allocation_payroll(
            payload.employee.employment,
            allocation,
            payload.pay_period,
            payload.employee.tax_profile,
            payload.tax_year,
        )
    except PayrollError as exc:
        raise _to_http(exc) from exc
    return result.model_dump(mode="json")


@router.post("/summary")
async def calculate_summary(payload: PayrollRequest) -> dict:
    service = get_payroll_service()
    try:
        summary = service.calculate_summary(payload.employee, payload.pay_period, payload.tax_year)
    except PayrollError as exc:
        raise _to_http(exc) from exc
    return summary.model_dump(mode="json")


@router.post("/advances/preview")
async def preview_advances(payload: PayrollRequest) -> dict:
    service = get_payroll_service()
    try:
        previews = service.preview_advances(payload.employee, payload.pay_period)
    except PayrollError as exc:
        raise _to_http(exc) from exc
    return {
        "employee_ref": payload.employee.employee_ref,
        "advances_needed": bool(previews),
        "items": [item.model_dump(mode="json") for item in previews],
        "summary": {
            "count": len(previews),
            "total_estimated_amount": str(quantize(sum((item.estimated_amount for item in previews), ZERO))),
        },
    }


@router.post("/process")
async def process_payroll(payload: ProcessPayrollRequest, x_actor: str | None = Header(default=None)) -> dict:
    actor = _resolve_actor(payload.actor, x_actor)
    service = get_payroll_service()
    try:
        run = service.process_employee_payroll(
            payload.employee, payload.pay_period, actor=actor, save=payload.save, tax_year=payload.tax_year
        )
    except PayrollError as exc:
        raise _to_http(exc) from exc
    return run.to_dict()


@router.post("/bulk")
async def process_bulk(payload: BulkPayrollRequest, x_actor: str | None = Header(default=None)) -> dict:
    actor = _resolve_actor(payload.actor, x_actor)
    service = get_payroll_service()
    try:
        report = service.process_bulk_payroll(payload.employees, payload.pay_period, actor=actor, save=payload.save)
    except PayrollError as exc:
        raise _to_http(exc) from exc
    return report.to_dict()


@router.post("/advances/{advance_id}/settle")
async def settle_advance(
    advance_id: str, payload: SettleAdvanceRequest, x_actor: str | None = Header(default=None)
) -> dict:
    actor = _resolve_actor(payload.actor, x_actor)
    service = get_payroll_service()
    record = service.settle_advance(advance_id, payload.settlement_date, actor=actor)
    if record is None:
        raise HTTPException(status_code=404, detail="advance not found")
    return {
        "advance_id": record.advance_id,
        "payroll_id": record.payroll_id,
        "settlement_date": record.settlement_date.isoformat() if record.settlement_date else None,
        "updated_by": record.updated_by,
    }


@router.get("/statistics")
async def get_statistics(
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
) -> dict:
    if start and end and start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")
    service = get_payroll_service()
    return service.payroll_statistics(start, end)
