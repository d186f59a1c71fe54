# compliance_engine/services/compliance/aggregator.py
"""
Aggregator

Fan-in of per-document evaluations:
- one representative status per employee (strict priority)
- company / global summaries (counts, sums, completion rate)
- expiry alert feed for the dashboard
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Literal, Optional, Sequence

from compliance_engine.services.compliance.dependency_checker import DependencyWarning
from compliance_engine.services.compliance.evaluation import DocumentEvaluation
from compliance_engine.services.compliance.fine_calculator import total_fines
from compliance_engine.services.compliance.models import (
    STATUS_PRIORITY,
    EmployeeRecord,
    LifecycleState,
)

ZERO = Decimal("0")

FeedStatus = Literal["expired", "urgent", "warning"]


@dataclass(frozen=True)
class EmployeeComplianceView:
    employee_id: str
    company_id: str
    employee_name: str
    aggregate_status: Optional[LifecycleState]
    urgent_document_id: Optional[str]
    urgent_document_type: Optional[str]
    total_fine_exposure: Decimal
    daily_burn_rate: Decimal
    documents: List[DocumentEvaluation] = field(default_factory=list)
    dependency_warnings: List[DependencyWarning] = field(default_factory=list)
    missing_mandatory_types: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """Every mandatory type tracked and none of them INCOMPLETE."""
        if self.missing_mandatory_types:
            return False
        return not any(
            ev.is_mandatory and ev.state == LifecycleState.INCOMPLETE for ev in self.documents
        )


@dataclass(frozen=True)
class ComplianceSummary:
    scope: Literal["company", "global"]
    company_id: Optional[str]
    currency: str
    as_of: date
    total_employees: int
    complete_employees: int
    total_documents: int
    employee_status_counts: Dict[str, int]
    document_status_counts: Dict[str, int]
    total_fine_exposure: Decimal
    daily_burn_rate: Decimal
    completion_rate: float


@dataclass(frozen=True)
class ExpiryFeedItem:
    document_id: str
    employee_id: str
    company_id: Optional[str]
    doc_type: str
    display_name: str
    expiry_date: date
    days_left: int
    status: FeedStatus


# =========================================================
# Employee level
# =========================================================

def urgency_key(ev: DocumentEvaluation):
    """Sort key: worst state first, then nearest expiry, then catalog order."""
    expiry = ev.document.expiry_date
    return (
        -STATUS_PRIORITY[ev.state],
        0 if expiry is not None else 1,
        expiry or date.max,
        ev.sort_order,
        ev.doc_type,
    )


def pick_urgent(evaluations: Sequence[DocumentEvaluation]) -> Optional[DocumentEvaluation]:
    if not evaluations:
        return None
    return min(evaluations, key=urgency_key)


def daily_burn_rate(evaluations: Iterable[DocumentEvaluation]) -> Decimal:
    """Sum of daily rates still accruing (PENALTY_ACTIVE, daily, below cap)."""
    burn = ZERO
    for ev in evaluations:
        burn += ev.burn_rate
    return burn


def aggregate_status(evaluations: Iterable[DocumentEvaluation]) -> Optional[LifecycleState]:
    worst: Optional[LifecycleState] = None
    for ev in evaluations:
        if worst is None or STATUS_PRIORITY[ev.state] > STATUS_PRIORITY[worst]:
            worst = ev.state
    return worst


def build_employee_view(
    employee: EmployeeRecord,
    evaluations: Sequence[DocumentEvaluation],
    *,
    warnings: Sequence[DependencyWarning] = (),
    mandatory_types: Iterable[str] = (),
) -> EmployeeComplianceView:
    tracked = {ev.doc_type for ev in evaluations}
    missing = [t for t in mandatory_types if t not in tracked]

    urgent = pick_urgent(evaluations)

    return EmployeeComplianceView(
        employee_id=employee.employee_id,
        company_id=employee.company_id,
        employee_name=employee.name,
        aggregate_status=aggregate_status(evaluations),
        urgent_document_id=urgent.document_id if urgent else None,
        urgent_document_type=urgent.doc_type if urgent else None,
        total_fine_exposure=total_fines(ev.fine_amount for ev in evaluations),
        daily_burn_rate=daily_burn_rate(evaluations),
        documents=sorted(evaluations, key=urgency_key),
        dependency_warnings=list(warnings),
        missing_mandatory_types=missing,
    )


# =========================================================
# Company / global level
# =========================================================

def summarize(
    views: Sequence[EmployeeComplianceView],
    *,
    as_of: date,
    currency: str,
    company_id: Optional[str] = None,
) -> ComplianceSummary:
    employee_counts: Dict[str, int] = {s.value: 0 for s in STATUS_PRIORITY}
    document_counts: Dict[str, int] = {s.value: 0 for s in STATUS_PRIORITY}

    total_documents = 0
    complete = 0
    burn = ZERO
    amounts: List[Decimal] = []

    for v in views:
        if v.aggregate_status is not None:
            employee_counts[v.aggregate_status.value] += 1
        if v.is_complete:
            complete += 1
        burn += v.daily_burn_rate
        amounts.append(v.total_fine_exposure)
        for ev in v.documents:
            document_counts[ev.state.value] += 1
            total_documents += 1

    total_employees = len(views)
    rate = round(complete / total_employees, 4) if total_employees else 0.0

    return ComplianceSummary(
        scope="company" if company_id else "global",
        company_id=company_id,
        currency=currency,
        as_of=as_of,
        total_employees=total_employees,
        complete_employees=complete,
        total_documents=total_documents,
        employee_status_counts=employee_counts,
        document_status_counts=document_counts,
        total_fine_exposure=total_fines(amounts),
        daily_burn_rate=burn,
        completion_rate=rate,
    )


# =========================================================
# Expiry feed (dashboard)
# =========================================================

def expiry_feed(
    evaluations: Iterable[DocumentEvaluation],
    *,
    as_of: date,
    window_days: int = 30,
    urgent_days: int = 7,
) -> List[ExpiryFeedItem]:
    items: List[ExpiryFeedItem] = []
    for ev in evaluations:
        expiry = ev.document.expiry_date
        if expiry is None or ev.days_until_expiry is None:
            continue
        if ev.state in (LifecycleState.INCOMPLETE, LifecycleState.RULE_MISSING):
            continue
        days_left = (expiry - as_of).days
        if days_left > window_days:
            continue

        if days_left < 0:
            status: FeedStatus = "expired"
        elif days_left <= urgent_days:
            status = "urgent"
        else:
            status = "warning"

        items.append(
            ExpiryFeedItem(
                document_id=ev.document_id,
                employee_id=ev.employee_id,
                company_id=ev.company_id,
                doc_type=ev.doc_type,
                display_name=ev.display_name,
                expiry_date=expiry,
                days_left=days_left,
                status=status,
            )
        )

    items.sort(key=lambda x: (x.expiry_date, x.doc_type, x.document_id))
    return items
