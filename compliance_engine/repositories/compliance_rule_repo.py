# compliance_engine/repositories/compliance_rule_repo.py

from __future__ import annotations

from typing import Any, Dict, List, Optional

from compliance_engine.repositories.base import BaseRepository
from compliance_engine.services.policy.schema import ComplianceRuleSpec, DocumentTypeSpec


class DocumentTypeRepository(BaseRepository):
    TABLE = "document_types"

    def __init__(self, sb):
        super().__init__(sb)

    def list_active(self) -> List[DocumentTypeSpec]:
        rows = self._select_all(self.TABLE, "*", is_active=True)
        return [DocumentTypeSpec(**_pick(r, DocumentTypeSpec.model_fields)) for r in rows]


class ComplianceRuleRepository(BaseRepository):
    """
    compliance_rules rows: company_id NULL = global.
    DB column fine_per_day holds the rate for every fine_type.
    """

    TABLE = "compliance_rules"
    _COLUMNS = "company_id,doc_type,grace_period_days,fine_per_day,fine_type,fine_cap,is_mandatory"

    def __init__(self, sb):
        super().__init__(sb)

    def list_all(self) -> List[ComplianceRuleSpec]:
        return [self._to_spec(r) for r in self._select_all(self.TABLE, self._COLUMNS)]

    def list_for_company(self, company_id: str) -> List[ComplianceRuleSpec]:
        return [
            self._to_spec(r)
            for r in self._select_all(self.TABLE, self._COLUMNS, company_id=company_id)
        ]

    def _to_spec(self, row: Dict[str, Any]) -> ComplianceRuleSpec:
        company_id: Optional[str] = row.get("company_id")
        return ComplianceRuleSpec(
            company_id=str(company_id) if company_id else None,
            doc_type=row["doc_type"],
            grace_period_days=row.get("grace_period_days"),
            fine_rate=row.get("fine_per_day"),
            fine_type=row.get("fine_type"),
            fine_cap=row.get("fine_cap"),
            is_mandatory=row.get("is_mandatory"),
        )


def _pick(row: Dict[str, Any], fields) -> Dict[str, Any]:
    return {k: v for k, v in row.items() if k in fields and v is not None}
