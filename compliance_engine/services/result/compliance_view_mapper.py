# compliance_engine/services/result/compliance_view_mapper.py
"""
Engine dataclasses -> API view models.
Decimal amounts leave the engine as floats here and nowhere else.
"""

from __future__ import annotations

from datetime import date

from compliance_engine.schemas.compliance_view_model import (
    AlertOut,
    AlertRunOut,
    ComplianceSummaryOut,
    DependencyWarningOut,
    DocumentComplianceOut,
    EffectiveRuleOut,
    EmployeeComplianceOut,
    ExpiryFeedItemOut,
)
from compliance_engine.services.compliance.aggregator import (
    ComplianceSummary,
    EmployeeComplianceView,
    ExpiryFeedItem,
)
from compliance_engine.services.compliance.alert_service import AlertRunResult
from compliance_engine.services.compliance.dependency_checker import DependencyWarning
from compliance_engine.services.compliance.evaluation import DocumentEvaluation
from compliance_engine.services.compliance.notification_scheduler import AlertTier
from compliance_engine.services.policy.resolver import EffectiveRule


def map_document(ev: DocumentEvaluation) -> DocumentComplianceOut:
    return DocumentComplianceOut(
        document_id=ev.document_id,
        employee_id=ev.employee_id,
        doc_type=ev.doc_type,
        display_name=ev.display_name,
        lifecycle_state=ev.state.value,
        expiry_date=ev.document.expiry_date,
        days_until_expiry=ev.days_until_expiry,
        grace_days_remaining=ev.grace_days_remaining,
        fine_amount=float(ev.fine_amount),
        at_cap=ev.fine.at_cap,
        is_mandatory=ev.is_mandatory,
        missing_fields=list(ev.missing_fields),
        rule_error=ev.rule_error,
    )


def map_warning(w: DependencyWarning) -> DependencyWarningOut:
    return DependencyWarningOut(
        code=w.code,
        blocker_type=w.blocker_type,
        blocked_type=w.blocked_type,
        blocker_document_id=w.blocker_document_id,
        blocked_document_id=w.blocked_document_id,
        rule=w.rule,
        reason=w.reason,
    )


def map_employee(view: EmployeeComplianceView, *, as_of: date, currency: str) -> EmployeeComplianceOut:
    return EmployeeComplianceOut(
        employee_id=view.employee_id,
        company_id=view.company_id,
        employee_name=view.employee_name,
        as_of=as_of,
        currency=currency,
        aggregate_status=view.aggregate_status.value if view.aggregate_status else None,
        urgent_document_id=view.urgent_document_id,
        urgent_document_type=view.urgent_document_type,
        total_fine_exposure=float(view.total_fine_exposure),
        daily_burn_rate=float(view.daily_burn_rate),
        is_complete=view.is_complete,
        missing_mandatory_types=list(view.missing_mandatory_types),
        dependency_warnings=[map_warning(w) for w in view.dependency_warnings],
        documents=[map_document(ev) for ev in view.documents],
    )


def map_summary(s: ComplianceSummary) -> ComplianceSummaryOut:
    return ComplianceSummaryOut(
        scope=s.scope,
        company_id=s.company_id,
        as_of=s.as_of,
        currency=s.currency,
        total_employees=s.total_employees,
        complete_employees=s.complete_employees,
        total_documents=s.total_documents,
        total_fine_exposure=float(s.total_fine_exposure),
        daily_burn_rate=float(s.daily_burn_rate),
        completion_rate=s.completion_rate,
        employee_status_counts=dict(s.employee_status_counts),
        document_status_counts=dict(s.document_status_counts),
    )


def map_feed_item(item: ExpiryFeedItem) -> ExpiryFeedItemOut:
    return ExpiryFeedItemOut(
        document_id=item.document_id,
        employee_id=item.employee_id,
        company_id=item.company_id,
        doc_type=item.doc_type,
        display_name=item.display_name,
        expiry_date=item.expiry_date,
        days_left=item.days_left,
        status=item.status,
    )


def map_alert(a: AlertTier) -> AlertOut:
    return AlertOut(
        document_id=a.document_id,
        employee_id=a.employee_id,
        company_id=a.company_id,
        doc_type=a.doc_type,
        tier=a.tier,
        bucket=a.bucket,
        severity=a.severity,
        title=a.title,
        message=a.message,
        days_until_expiry=a.days_until_expiry,
        fine_amount=float(a.fine_amount),
        currency=a.currency,
    )


def map_alert_run(r: AlertRunResult) -> AlertRunOut:
    return AlertRunOut(
        as_of=r.as_of,
        evaluated_documents=r.evaluated_documents,
        due=r.due,
        already_raised=r.already_raised,
        emitted=[map_alert(a) for a in r.emitted],
    )


def map_rule(rule: EffectiveRule) -> EffectiveRuleOut:
    return EffectiveRuleOut(
        doc_type=rule.doc_type,
        company_id=rule.company_id,
        has_expiry=rule.has_expiry,
        grace_period_days=rule.grace_period_days,
        fine_rate=float(rule.fine_rate),
        fine_type=rule.fine_type,
        fine_cap=float(rule.fine_cap),
        is_mandatory=rule.is_mandatory,
        sources=dict(rule.sources),
    )
