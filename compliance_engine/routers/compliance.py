from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from compliance_engine.core.errors import NotFoundError
from compliance_engine.schemas.compliance_view_model import (
    ComplianceSummaryOut,
    EmployeeComplianceOut,
    ExpiryFeedItemOut,
)
from compliance_engine.services.compliance.snapshot_loader import build_evaluation_service
from compliance_engine.services.result.compliance_view_mapper import (
    map_employee,
    map_feed_item,
    map_summary,
)

router = APIRouter()


@router.get("/employees/{employee_id}", response_model=EmployeeComplianceOut)
def get_employee_compliance(request: Request, employee_id: str, as_of: Optional[date] = None):
    as_of = as_of or date.today()
    service = build_evaluation_service(request.state.sb)
    try:
        view = service.evaluate_employee(employee_id, as_of)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return map_employee(view, as_of=as_of, currency=service.currency_for(view.company_id))


@router.get("/companies/{company_id}/summary", response_model=ComplianceSummaryOut)
def get_company_summary(request: Request, company_id: str, as_of: Optional[date] = None):
    as_of = as_of or date.today()
    service = build_evaluation_service(request.state.sb, company_id=company_id)
    try:
        summary = service.company_summary(company_id, as_of)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return map_summary(summary)


@router.get("/summary", response_model=ComplianceSummaryOut)
def get_global_summary(request: Request, as_of: Optional[date] = None):
    as_of = as_of or date.today()
    service = build_evaluation_service(request.state.sb)
    return map_summary(service.global_summary(as_of))


@router.get("/expiring", response_model=List[ExpiryFeedItemOut])
def get_expiring_documents(
    request: Request,
    as_of: Optional[date] = None,
    company_id: Optional[str] = None,
    window_days: int = Query(30, ge=0, le=365),
):
    as_of = as_of or date.today()
    service = build_evaluation_service(request.state.sb, company_id=company_id)
    items = service.expiring(as_of, company_id=company_id, window_days=window_days)
    return [map_feed_item(i) for i in items]
