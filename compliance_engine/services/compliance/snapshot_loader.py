# compliance_engine/services/compliance/snapshot_loader.py
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from compliance_engine.repositories.company_repo import CompanyRepository
from compliance_engine.repositories.compliance_rule_repo import (
    ComplianceRuleRepository,
    DocumentTypeRepository,
)
from compliance_engine.repositories.document_repo import DocumentRepository
from compliance_engine.repositories.employee_repo import EmployeeRepository
from compliance_engine.services.compliance.evaluation_service import ComplianceEvaluationService
from compliance_engine.services.compliance.models import ComplianceSnapshot
from compliance_engine.services.policy.registry import RulebookRegistry
from compliance_engine.services.policy.resolver import RuleResolver
from compliance_engine.services.policy.schema import (
    ComplianceRuleSpec,
    DocumentTypeSpec,
    RulebookBundle,
)

logger = logging.getLogger(__name__)


class SnapshotLoader:
    """
    Reads one immutable snapshot for an evaluation pass.

    The rulebook seeds the catalog and the global rules when the
    document_types / compliance_rules tables hold none.
    """

    def __init__(self, sb, *, rulebook: RulebookBundle, default_currency: str = "AED"):
        self.companies = CompanyRepository(sb, default_currency=default_currency)
        self.employees = EmployeeRepository(sb)
        self.documents = DocumentRepository(sb)
        self.document_types = DocumentTypeRepository(sb)
        self.rules = ComplianceRuleRepository(sb)
        self.rulebook = rulebook

    def load_rules(
        self, company_id: Optional[str] = None
    ) -> Tuple[List[DocumentTypeSpec], List[ComplianceRuleSpec]]:
        document_types = self.document_types.list_active()
        if not document_types:
            document_types = list(self.rulebook.document_types)

        db_rules = self.rules.list_all()
        if company_id is not None:
            db_rules = [r for r in db_rules if r.company_id in (None, company_id)]
        rules = list(db_rules)
        if not any(r.company_id is None for r in db_rules):
            rules = list(self.rulebook.rules) + rules
        return document_types, rules

    def load_resolver(self, company_id: Optional[str] = None) -> RuleResolver:
        document_types, rules = self.load_rules(company_id)
        return RuleResolver(document_types, rules)

    def load(self, company_id: Optional[str] = None) -> ComplianceSnapshot:
        companies = self.companies.list_all()
        if company_id is not None:
            companies = [c for c in companies if c.company_id == company_id]

        employees = self.employees.list_all(company_id)
        documents = self.documents.list_by_employees(e.employee_id for e in employees)
        document_types, rules = self.load_rules(company_id)

        logger.info(
            "snapshot_loaded company_id=%s companies=%d employees=%d documents=%d types=%d rules=%d",
            company_id,
            len(companies),
            len(employees),
            len(documents),
            len(document_types),
            len(rules),
        )

        return ComplianceSnapshot(
            companies=companies,
            employees=employees,
            documents=documents,
            document_types=document_types,
            rules=rules,
        )


def build_evaluation_service(sb, company_id: Optional[str] = None) -> ComplianceEvaluationService:
    """Snapshot from Supabase + registry rulebook -> ready evaluation service."""
    loader = SnapshotLoader(
        sb,
        rulebook=RulebookRegistry.get_bundle(),
        default_currency=RulebookRegistry.default_currency(),
    )
    return ComplianceEvaluationService(
        loader.load(company_id),
        expiring_soon_days=RulebookRegistry.expiring_soon_days(),
        default_currency=RulebookRegistry.default_currency(),
    )
