# compliance_engine/services/compliance/lifecycle.py
"""
Lifecycle Evaluator

Pure function of (document, catalog entry, effective rule, as_of).
Order is fixed, first match wins:

    1. any required field unset / inverted dates -> INCOMPLETE
    2. as_of >  expiry + grace                     -> PENALTY_ACTIVE
    3. as_of >  expiry                             -> IN_GRACE
    4. expiry - as_of <= expiring_soon_days        -> EXPIRING_SOON
    5.                                             -> VALID

Expiry-exempt types stop after step 1.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any, List, Optional

from compliance_engine.services.compliance.models import DocumentRecord, LifecycleState
from compliance_engine.services.policy.resolver import EffectiveRule
from compliance_engine.services.policy.schema import DocumentTypeSpec

DEFAULT_EXPIRING_SOON_DAYS = 30


def _is_blank(v: Any) -> bool:
    if v is None:
        return True
    if isinstance(v, str) and not v.strip():
        return True
    return False


def missing_fields(document: DocumentRecord, doc_type: DocumentTypeSpec) -> List[str]:
    """Required fields that are unset, in display order."""
    missing: List[str] = []

    if _is_blank(document.document_number):
        missing.append("document_number")

    if doc_type.has_expiry:
        if document.issue_date is None:
            missing.append("issue_date")
        if document.expiry_date is None:
            missing.append("expiry_date")

    for key in doc_type.required_metadata_keys():
        if _is_blank((document.metadata or {}).get(key)):
            missing.append(f"metadata.{key}")

    return missing


def has_inverted_dates(document: DocumentRecord) -> bool:
    if document.issue_date is None or document.expiry_date is None:
        return False
    return document.expiry_date < document.issue_date


def is_complete(document: DocumentRecord, doc_type: DocumentTypeSpec) -> bool:
    if missing_fields(document, doc_type):
        return False
    return not (doc_type.has_expiry and has_inverted_dates(document))


def evaluate_lifecycle(
    document: DocumentRecord,
    doc_type: DocumentTypeSpec,
    rule: EffectiveRule,
    as_of: date,
    *,
    expiring_soon_days: int = DEFAULT_EXPIRING_SOON_DAYS,
) -> LifecycleState:
    if not is_complete(document, doc_type):
        return LifecycleState.INCOMPLETE

    if not doc_type.has_expiry:
        return LifecycleState.VALID

    expiry = document.expiry_date
    if expiry is None:
        return LifecycleState.INCOMPLETE

    grace_end = expiry + timedelta(days=max(0, rule.grace_period_days))

    if as_of > grace_end:
        return LifecycleState.PENALTY_ACTIVE
    if as_of > expiry:
        return LifecycleState.IN_GRACE
    if (expiry - as_of).days <= expiring_soon_days:
        return LifecycleState.EXPIRING_SOON
    return LifecycleState.VALID


def days_until_expiry(document: DocumentRecord, as_of: date) -> Optional[int]:
    """Negative once expired; None when there is no expiry date."""
    if document.expiry_date is None:
        return None
    return (document.expiry_date - as_of).days
