from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from compliance_engine.core.errors import NotFoundError, RenewalConflict, RenewalError
from compliance_engine.repositories.document_repo import DocumentRepository
from compliance_engine.repositories.employee_repo import EmployeeRepository
from compliance_engine.schemas.compliance_view_model import DocumentComplianceOut
from compliance_engine.services.compliance.snapshot_loader import (
    SnapshotLoader,
    build_evaluation_service,
)
from compliance_engine.services.document.onboarding import build_onboarding_documents
from compliance_engine.services.document.renewal import renew_document
from compliance_engine.services.policy.registry import RulebookRegistry
from compliance_engine.services.result.compliance_view_mapper import map_document

router = APIRouter()


class RenewDocumentRequest(BaseModel):
    new_expiry: date
    new_issue_date: Optional[date] = None
    new_document_number: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    file_type: Optional[str] = None


def _loader(request: Request) -> SnapshotLoader:
    return SnapshotLoader(
        request.state.sb,
        rulebook=RulebookRegistry.get_bundle(),
        default_currency=RulebookRegistry.default_currency(),
    )


@router.get("/documents/{document_id}/compliance", response_model=DocumentComplianceOut)
def get_document_compliance(request: Request, document_id: str, as_of: Optional[date] = None):
    as_of = as_of or date.today()
    service = build_evaluation_service(request.state.sb)
    try:
        ev = service.evaluate_document(document_id, as_of)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return map_document(ev)


@router.post("/employees/{employee_id}/onboard")
def onboard_employee(request: Request, employee_id: str):
    sb = request.state.sb
    employee = EmployeeRepository(sb).get(employee_id)
    if not employee:
        raise HTTPException(status_code=404, detail="Employee not found")

    doc_repo = DocumentRepository(sb)
    existing = {d.doc_type for d in doc_repo.list_by_employees([employee_id]) if d.is_current}
    docs = build_onboarding_documents(
        employee_id=employee_id,
        company_id=employee.company_id,
        resolver=_loader(request).load_resolver(employee.company_id),
        existing_types=existing,
    )
    doc_repo.insert_many(docs)
    return {
        "employee_id": employee_id,
        "created": [{"document_id": d.document_id, "doc_type": d.doc_type} for d in docs],
    }


@router.post("/documents/{document_id}/renew")
def renew(request: Request, document_id: str, payload: RenewDocumentRequest):
    sb = request.state.sb
    doc_repo = DocumentRepository(sb)
    old = doc_repo.get(document_id)
    if not old:
        raise HTTPException(status_code=404, detail="Document not found")

    employee = EmployeeRepository(sb).get(old.employee_id)
    company_id = employee.company_id if employee else None
    try:
        result = renew_document(
            old,
            new_expiry=payload.new_expiry,
            new_issue_date=payload.new_issue_date,
            new_document_number=payload.new_document_number,
            metadata=payload.metadata,
            file_info=payload.model_dump(include={"file_url", "file_name", "file_size", "file_type"}),
            resolver=_loader(request).load_resolver(company_id),
        )
    except RenewalError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        doc_repo.save_renewal(renewed=result.renewed, superseded=result.superseded)
    except RenewalConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {
        "document_id": result.renewed.document_id,
        "superseded_document_id": result.superseded.document_id,
        "expiry_date": result.renewed.expiry_date,
    }
