# compliance_engine/services/compliance/evaluation.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional

from compliance_engine.core.errors import RuleNotFound
from compliance_engine.services.compliance.fine_calculator import (
    NO_FINE,
    FineAssessment,
    FineCalculator,
    burn_rate_contribution,
)
from compliance_engine.services.compliance.lifecycle import (
    DEFAULT_EXPIRING_SOON_DAYS,
    days_until_expiry,
    evaluate_lifecycle,
    is_complete,
    missing_fields,
)
from compliance_engine.services.compliance.models import DocumentRecord, LifecycleState
from compliance_engine.services.policy.resolver import EffectiveRule, RuleResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentEvaluation:
    document: DocumentRecord
    company_id: Optional[str]
    state: LifecycleState
    rule: Optional[EffectiveRule]
    fine: FineAssessment
    days_until_expiry: Optional[int]
    display_name: str
    sort_order: int = 100
    missing_fields: List[str] = field(default_factory=list)
    rule_error: Optional[str] = None

    @property
    def document_id(self) -> str:
        return self.document.document_id

    @property
    def employee_id(self) -> str:
        return self.document.employee_id

    @property
    def doc_type(self) -> str:
        return self.document.doc_type

    @property
    def fine_amount(self) -> Decimal:
        return self.fine.amount

    @property
    def grace_days_remaining(self) -> Optional[int]:
        return self.fine.grace_days_remaining

    @property
    def is_mandatory(self) -> bool:
        return bool(self.rule and self.rule.is_mandatory)

    @property
    def burn_rate(self) -> Decimal:
        if self.rule is None:
            return Decimal("0")
        return burn_rate_contribution(self.rule, self.state, self.fine)


class DocumentEvaluator:
    """Rule Resolver -> Lifecycle Evaluator -> Fine Calculator for one document."""

    def __init__(
        self,
        resolver: RuleResolver,
        *,
        calculator: Optional[FineCalculator] = None,
        expiring_soon_days: int = DEFAULT_EXPIRING_SOON_DAYS,
    ):
        self.resolver = resolver
        self.calculator = calculator or FineCalculator()
        self.expiring_soon_days = expiring_soon_days

    def evaluate(
        self,
        document: DocumentRecord,
        *,
        company_id: Optional[str],
        as_of: date,
    ) -> DocumentEvaluation:
        dt = self.resolver.get_document_type(document.doc_type)
        du = days_until_expiry(document, as_of)

        rule: Optional[EffectiveRule] = None
        rule_error: Optional[str] = None
        try:
            rule = self.resolver.resolve(document.doc_type, company_id)
        except RuleNotFound as e:
            rule_error = str(e)
            logger.warning(
                "rule_missing document_id=%s doc_type=%s company_id=%s detail=%s",
                document.document_id,
                document.doc_type,
                company_id,
                e,
            )

        if dt is None:
            return DocumentEvaluation(
                document=document,
                company_id=company_id,
                state=LifecycleState.RULE_MISSING,
                rule=None,
                fine=NO_FINE,
                days_until_expiry=du,
                display_name=document.doc_type,
                rule_error=rule_error,
            )

        missing = missing_fields(document, dt)

        # Completeness outranks everything, including a missing rule.
        if not is_complete(document, dt):
            state = LifecycleState.INCOMPLETE
        elif rule is None:
            state = LifecycleState.RULE_MISSING
        else:
            state = evaluate_lifecycle(
                document, dt, rule, as_of, expiring_soon_days=self.expiring_soon_days
            )

        fine = NO_FINE
        if rule is not None and state in (LifecycleState.IN_GRACE, LifecycleState.PENALTY_ACTIVE):
            fine = self.calculator.accrue(document, rule, state, as_of)

        return DocumentEvaluation(
            document=document,
            company_id=company_id,
            state=state,
            rule=rule,
            fine=fine,
            days_until_expiry=du if dt.has_expiry else None,
            display_name=dt.display_name,
            sort_order=dt.sort_order,
            missing_fields=missing,
            rule_error=rule_error,
        )
