# compliance_engine/services/compliance/models.py

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from compliance_engine.services.policy.schema import ComplianceRuleSpec, DocumentTypeSpec


class LifecycleState(str, Enum):
    INCOMPLETE = "incomplete"
    VALID = "valid"
    EXPIRING_SOON = "expiring_soon"
    IN_GRACE = "in_grace"
    PENALTY_ACTIVE = "penalty_active"
    # RuleNotFound during evaluation: never reported as a silent zero fine
    RULE_MISSING = "rule_missing"


# Worst first. Used to pick one status to represent many documents.
STATUS_PRIORITY: Dict[LifecycleState, int] = {
    LifecycleState.PENALTY_ACTIVE: 5,
    LifecycleState.IN_GRACE: 4,
    LifecycleState.EXPIRING_SOON: 3,
    LifecycleState.INCOMPLETE: 2,
    LifecycleState.RULE_MISSING: 1,
    LifecycleState.VALID: 0,
}

EXPIRED_STATES = frozenset({LifecycleState.IN_GRACE, LifecycleState.PENALTY_ACTIVE})


# =========================================================
# Snapshot records (read-only inputs)
# =========================================================

class DocumentRecord(BaseModel):
    """
    One tracked instance of a government document.
    Renewal creates a new record; the old one keeps superseded_by.
    """
    model_config = ConfigDict(extra="ignore")

    document_id: str
    employee_id: str
    doc_type: str

    document_number: Optional[str] = None
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    file_type: Optional[str] = None

    superseded_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_current(self) -> bool:
        return self.superseded_by is None


class EmployeeRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    employee_id: str
    company_id: str
    name: str = ""
    trade: Optional[str] = None
    status: str = "active"


class CompanyRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    company_id: str
    name: str = ""
    currency: str = "AED"


class ComplianceSnapshot(BaseModel):
    """
    Immutable input for one evaluation pass.
    Callers must evaluate a whole snapshot against a single as_of.
    """
    companies: List[CompanyRecord] = Field(default_factory=list)
    employees: List[EmployeeRecord] = Field(default_factory=list)
    documents: List[DocumentRecord] = Field(default_factory=list)
    document_types: List[DocumentTypeSpec] = Field(default_factory=list)
    rules: List[ComplianceRuleSpec] = Field(default_factory=list)

    def documents_by_employee(self, *, current_only: bool = True) -> Dict[str, List[DocumentRecord]]:
        out: Dict[str, List[DocumentRecord]] = {}
        for d in self.documents:
            if current_only and not d.is_current:
                continue
            out.setdefault(d.employee_id, []).append(d)
        return out

    def company_index(self) -> Dict[str, CompanyRecord]:
        return {c.company_id: c for c in self.companies}

    def employee_index(self) -> Dict[str, EmployeeRecord]:
        return {e.employee_id: e for e in self.employees}
