from __future__ import annotations

from datetime import date
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field


LifecycleStateName = Literal[
    "incomplete", "valid", "expiring_soon", "in_grace", "penalty_active", "rule_missing"
]


class DocumentComplianceOut(BaseModel):
    document_id: str
    employee_id: str
    doc_type: str
    display_name: str
    lifecycle_state: LifecycleStateName
    expiry_date: Optional[date] = None
    days_until_expiry: Optional[int] = None
    grace_days_remaining: Optional[int] = None
    fine_amount: float = 0.0
    at_cap: bool = False
    is_mandatory: bool = False
    missing_fields: List[str] = Field(default_factory=list)
    rule_error: Optional[str] = None


class DependencyWarningOut(BaseModel):
    code: str
    blocker_type: str
    blocked_type: str
    blocker_document_id: Optional[str] = None
    blocked_document_id: str
    rule: str
    reason: str


class EmployeeComplianceOut(BaseModel):
    employee_id: str
    company_id: str
    employee_name: str
    as_of: date
    currency: str
    aggregate_status: Optional[LifecycleStateName] = None
    urgent_document_id: Optional[str] = None
    urgent_document_type: Optional[str] = None
    total_fine_exposure: float = 0.0
    daily_burn_rate: float = 0.0
    is_complete: bool = False
    missing_mandatory_types: List[str] = Field(default_factory=list)
    dependency_warnings: List[DependencyWarningOut] = Field(default_factory=list)
    documents: List[DocumentComplianceOut] = Field(default_factory=list)


class ComplianceSummaryOut(BaseModel):
    scope: Literal["company", "global"]
    company_id: Optional[str] = None
    as_of: date
    currency: str
    total_employees: int
    complete_employees: int
    total_documents: int
    total_fine_exposure: float
    daily_burn_rate: float
    completion_rate: float
    employee_status_counts: Dict[str, int]
    document_status_counts: Dict[str, int]


class ExpiryFeedItemOut(BaseModel):
    document_id: str
    employee_id: str
    company_id: Optional[str] = None
    doc_type: str
    display_name: str
    expiry_date: date
    days_left: int
    status: Literal["expired", "urgent", "warning"]


class AlertOut(BaseModel):
    document_id: str
    employee_id: str
    company_id: Optional[str] = None
    doc_type: str
    tier: str
    bucket: date
    severity: Literal["info", "warning", "critical"]
    title: str
    message: str
    days_until_expiry: Optional[int] = None
    fine_amount: float = 0.0
    currency: str


class AlertRunOut(BaseModel):
    as_of: date
    evaluated_documents: int
    due: int
    already_raised: int
    emitted: List[AlertOut]


class EffectiveRuleOut(BaseModel):
    doc_type: str
    company_id: Optional[str] = None
    has_expiry: bool
    grace_period_days: int
    fine_rate: float
    fine_type: Literal["daily", "monthly", "one_time"]
    fine_cap: float
    is_mandatory: bool
    sources: Dict[str, str]
