# compliance_engine/services/compliance/dependency_checker.py
"""
Dependency Checker

Fixed table of (blocker, blocked) document pairs. A blocker that is
missing, expired or (passport only) too short-lived makes renewal of the
blocked document impossible. Evaluation never raises: whatever cannot be
resolved degrades to a MISSING_BLOCKER warning.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Literal, Optional

from compliance_engine.services.compliance.models import DocumentRecord

WarningCode = Literal["MISSING_BLOCKER", "BLOCKER_EXPIRED", "INSUFFICIENT_VALIDITY"]


@dataclass(frozen=True)
class DependencyRule:
    blocker_type: str
    blocked_type: str
    description: str
    min_validity_months: int = 0


DEPENDENCY_RULES: tuple[DependencyRule, ...] = (
    DependencyRule(
        "passport",
        "visa",
        "Passport must stay valid for at least 6 months beyond the visa renewal window",
        min_validity_months=6,
    ),
    DependencyRule("health_insurance", "work_permit", "Work permit renewal requires active health insurance"),
    DependencyRule("iloe_insurance", "visa", "Visa renewal requires an active ILOE subscription"),
    DependencyRule("visa", "emirates_id", "Emirates ID renewal requires a valid residence visa"),
    DependencyRule("medical_fitness", "visa", "Visa renewal requires a valid medical fitness certificate"),
)


@dataclass(frozen=True)
class DependencyWarning:
    code: WarningCode
    blocker_type: str
    blocked_type: str
    blocker_document_id: Optional[str]
    blocked_document_id: str
    rule: str
    reason: str


def check_dependencies(
    documents: Iterable[DocumentRecord],
    as_of: date,
    rules: Iterable[DependencyRule] = DEPENDENCY_RULES,
) -> List[DependencyWarning]:
    by_type = _latest_by_type(documents)
    warnings: List[DependencyWarning] = []

    for rule in rules:
        blocked = by_type.get(rule.blocked_type)
        if blocked is None:
            continue

        blocker = by_type.get(rule.blocker_type)
        w = _evaluate_pair(rule, blocker, blocked, as_of)
        if w is not None:
            warnings.append(w)

    return warnings


def _evaluate_pair(
    rule: DependencyRule,
    blocker: Optional[DocumentRecord],
    blocked: DocumentRecord,
    as_of: date,
) -> Optional[DependencyWarning]:
    if blocker is None or blocker.expiry_date is None:
        reason = (
            f"{_label(rule.blocker_type)} is not on file"
            if blocker is None
            else f"{_label(rule.blocker_type)} has no expiry date recorded"
        )
        return DependencyWarning(
            code="MISSING_BLOCKER",
            blocker_type=rule.blocker_type,
            blocked_type=rule.blocked_type,
            blocker_document_id=blocker.document_id if blocker else None,
            blocked_document_id=blocked.document_id,
            rule=rule.description,
            reason=f"{reason}; required before {_label(rule.blocked_type)}",
        )

    if blocker.expiry_date < as_of:
        return DependencyWarning(
            code="BLOCKER_EXPIRED",
            blocker_type=rule.blocker_type,
            blocked_type=rule.blocked_type,
            blocker_document_id=blocker.document_id,
            blocked_document_id=blocked.document_id,
            rule=rule.description,
            reason=(
                f"{_label(rule.blocker_type)} expired on {blocker.expiry_date.isoformat()}; "
                f"{_label(rule.blocked_type)} cannot be renewed"
            ),
        )

    if rule.min_validity_months > 0:
        reference = as_of
        if blocked.expiry_date is not None and blocked.expiry_date > reference:
            reference = blocked.expiry_date
        required_until = add_months(reference, rule.min_validity_months)
        if blocker.expiry_date < required_until:
            return DependencyWarning(
                code="INSUFFICIENT_VALIDITY",
                blocker_type=rule.blocker_type,
                blocked_type=rule.blocked_type,
                blocker_document_id=blocker.document_id,
                blocked_document_id=blocked.document_id,
                rule=rule.description,
                reason=(
                    f"{_label(rule.blocker_type)} expires {blocker.expiry_date.isoformat()}, "
                    f"needs validity until at least {required_until.isoformat()}"
                ),
            )

    return None


def _latest_by_type(documents: Iterable[DocumentRecord]) -> Dict[str, DocumentRecord]:
    """One current document per type; the latest expiry wins if several are tracked."""
    out: Dict[str, DocumentRecord] = {}
    for d in documents:
        if not d.is_current:
            continue
        cur = out.get(d.doc_type)
        if cur is None or (d.expiry_date or date.min) > (cur.expiry_date or date.min):
            out[d.doc_type] = d
    return out


def add_months(d: date, months: int) -> date:
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _label(doc_type: str) -> str:
    return doc_type.replace("_", " ").title().replace("Iloe", "ILOE")
