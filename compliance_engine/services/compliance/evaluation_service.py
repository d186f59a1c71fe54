# compliance_engine/services/compliance/evaluation_service.py
"""
Compliance Evaluation Service
-----------------------------
Stateless batch pass over one ComplianceSnapshot:

    fan-out over employees  ->  per-document evaluation
                            ->  dependency check
    fan-in                  ->  employee views / summaries

Every call takes an explicit as_of; one pass = one as_of.
Cancellation is honoured between employees only, so a cancelled pass
never leaves a half-evaluated employee behind.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from compliance_engine.core.errors import NotFoundError
from compliance_engine.services.compliance.aggregator import (
    ComplianceSummary,
    EmployeeComplianceView,
    ExpiryFeedItem,
    build_employee_view,
    expiry_feed,
    summarize,
)
from compliance_engine.services.compliance.dependency_checker import check_dependencies
from compliance_engine.services.compliance.evaluation import DocumentEvaluation, DocumentEvaluator
from compliance_engine.services.compliance.lifecycle import DEFAULT_EXPIRING_SOON_DAYS
from compliance_engine.services.compliance.models import (
    ComplianceSnapshot,
    DocumentRecord,
    EmployeeRecord,
)
from compliance_engine.services.policy.resolver import RuleResolver

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    as_of: date
    views: List[EmployeeComplianceView] = field(default_factory=list)
    skipped_employee_ids: List[str] = field(default_factory=list)

    @property
    def cancelled(self) -> bool:
        return bool(self.skipped_employee_ids)

    def evaluations(self) -> List[DocumentEvaluation]:
        return [ev for v in self.views for ev in v.documents]


class ComplianceEvaluationService:
    def __init__(
        self,
        snapshot: ComplianceSnapshot,
        *,
        resolver: Optional[RuleResolver] = None,
        expiring_soon_days: int = DEFAULT_EXPIRING_SOON_DAYS,
        default_currency: str = "AED",
    ):
        self.snapshot = snapshot
        self.resolver = resolver or RuleResolver(snapshot.document_types, snapshot.rules)
        self.evaluator = DocumentEvaluator(self.resolver, expiring_soon_days=expiring_soon_days)
        self.default_currency = default_currency

        self._employees = snapshot.employee_index()
        self._companies = snapshot.company_index()
        self._docs_by_employee = snapshot.documents_by_employee(current_only=True)

    # =====================================================
    # Per employee (pure)
    # =====================================================

    def evaluate_employee_record(
        self,
        employee: EmployeeRecord,
        documents: Sequence[DocumentRecord],
        as_of: date,
    ) -> EmployeeComplianceView:
        current = [d for d in documents if d.is_current]
        evaluations = [
            self.evaluator.evaluate(d, company_id=employee.company_id, as_of=as_of)
            for d in current
        ]
        warnings = check_dependencies(current, as_of)
        mandatory = [t.doc_type for t in self.resolver.mandatory_types(employee.company_id)]

        return build_employee_view(
            employee,
            evaluations,
            warnings=warnings,
            mandatory_types=mandatory,
        )

    def evaluate_employee(self, employee_id: str, as_of: date) -> EmployeeComplianceView:
        employee = self._employees.get(employee_id)
        if employee is None:
            raise NotFoundError(f"Employee not found: {employee_id}")
        return self.evaluate_employee_record(
            employee, self._docs_by_employee.get(employee_id, []), as_of
        )

    def evaluate_document(self, document_id: str, as_of: date) -> DocumentEvaluation:
        doc = next((d for d in self.snapshot.documents if d.document_id == document_id), None)
        if doc is None:
            raise NotFoundError(f"Document not found: {document_id}")
        employee = self._employees.get(doc.employee_id)
        company_id = employee.company_id if employee else None
        return self.evaluator.evaluate(doc, company_id=company_id, as_of=as_of)

    # =====================================================
    # Batch pass
    # =====================================================

    def evaluate_batch(
        self,
        as_of: date,
        *,
        company_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchResult:
        employees = self._select_employees(company_id)
        result = BatchResult(as_of=as_of)

        for i, emp in enumerate(employees):
            if cancel_event is not None and cancel_event.is_set():
                result.skipped_employee_ids = [e.employee_id for e in employees[i:]]
                logger.warning(
                    "batch_cancelled as_of=%s evaluated=%d skipped=%d",
                    as_of,
                    len(result.views),
                    len(result.skipped_employee_ids),
                )
                break
            result.views.append(
                self.evaluate_employee_record(emp, self._docs_by_employee.get(emp.employee_id, []), as_of)
            )

        return result

    async def evaluate_batch_async(
        self,
        as_of: date,
        *,
        company_id: Optional[str] = None,
        concurrency: int = 8,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchResult:
        employees = self._select_employees(company_id)
        sem = asyncio.Semaphore(max(1, concurrency))

        async def _one(emp: EmployeeRecord) -> Optional[EmployeeComplianceView]:
            async with sem:
                if cancel_event is not None and cancel_event.is_set():
                    return None
                return await asyncio.to_thread(
                    self.evaluate_employee_record,
                    emp,
                    self._docs_by_employee.get(emp.employee_id, []),
                    as_of,
                )

        views = await asyncio.gather(*(_one(e) for e in employees))

        result = BatchResult(as_of=as_of)
        for emp, view in zip(employees, views):
            if view is None:
                result.skipped_employee_ids.append(emp.employee_id)
            else:
                result.views.append(view)
        return result

    # =====================================================
    # Summaries
    # =====================================================

    def company_summary(self, company_id: str, as_of: date) -> ComplianceSummary:
        if company_id not in self._companies:
            raise NotFoundError(f"Company not found: {company_id}")
        batch = self.evaluate_batch(as_of, company_id=company_id)
        return summarize(
            batch.views,
            as_of=as_of,
            currency=self.currency_for(company_id),
            company_id=company_id,
        )

    def global_summary(self, as_of: date) -> ComplianceSummary:
        batch = self.evaluate_batch(as_of)
        return summarize(batch.views, as_of=as_of, currency=self.default_currency)

    def expiring(
        self,
        as_of: date,
        *,
        company_id: Optional[str] = None,
        window_days: int = 30,
    ) -> List[ExpiryFeedItem]:
        batch = self.evaluate_batch(as_of, company_id=company_id)
        return expiry_feed(batch.evaluations(), as_of=as_of, window_days=window_days)

    def currency_for(self, company_id: Optional[str]) -> str:
        company = self._companies.get(company_id) if company_id else None
        return company.currency if company and company.currency else self.default_currency

    def currency_map(self) -> Dict[str, str]:
        return {cid: self.currency_for(cid) for cid in self._companies}

    # =====================================================
    # Internal
    # =====================================================

    def _select_employees(self, company_id: Optional[str]) -> List[EmployeeRecord]:
        employees = self.snapshot.employees
        if company_id is not None:
            employees = [e for e in employees if e.company_id == company_id]
        return sorted(employees, key=lambda e: e.employee_id)
