# compliance_engine/services/policy/resolver.py
"""
Rule Resolver
-------------
Resolves the effective compliance rule for (doc_type, company_id).

Resolution is per field, not per row:
    company rule field (row exists AND field set)
        -> global rule field
        -> catalog default (is_mandatory only)

Types that carry an expiry must end up with every grace/fine field
resolved, otherwise RuleNotFound. Expiry-exempt types resolve with
zero fine fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from compliance_engine.core.errors import RuleNotFound, RulebookError
from compliance_engine.services.policy.schema import (
    ComplianceRuleSpec,
    DocumentTypeSpec,
    FineType,
    RulebookBundle,
)


FINE_FIELDS = ("grace_period_days", "fine_rate", "fine_type", "fine_cap")

_EXEMPT_DEFAULTS = {
    "grace_period_days": 0,
    "fine_rate": Decimal("0"),
    "fine_type": "daily",
    "fine_cap": Decimal("0"),
}


@dataclass(frozen=True)
class EffectiveRule:
    doc_type: str
    company_id: Optional[str]
    has_expiry: bool
    grace_period_days: int
    fine_rate: Decimal
    fine_type: FineType
    fine_cap: Decimal
    is_mandatory: bool
    # field name -> "company" | "global" | "catalog" | "exempt"
    sources: Dict[str, str] = field(default_factory=dict)

    @property
    def has_fine(self) -> bool:
        return self.fine_rate > 0

    @property
    def is_capped(self) -> bool:
        return self.fine_cap > 0


class RuleResolver:
    def __init__(
        self,
        document_types: Iterable[DocumentTypeSpec],
        rules: Iterable[ComplianceRuleSpec],
    ):
        self.document_types: Dict[str, DocumentTypeSpec] = {t.doc_type: t for t in document_types}
        self._global: Dict[str, ComplianceRuleSpec] = {}
        self._company: Dict[Tuple[str, str], ComplianceRuleSpec] = {}

        for r in rules:
            if r.company_id is None:
                if r.doc_type in self._global:
                    raise RulebookError(f"Duplicate global rule for doc_type={r.doc_type}")
                self._global[r.doc_type] = r
            else:
                key = (r.company_id, r.doc_type)
                if key in self._company:
                    raise RulebookError(
                        f"Duplicate company rule for company_id={r.company_id} doc_type={r.doc_type}"
                    )
                self._company[key] = r

    @classmethod
    def from_bundle(
        cls,
        bundle: RulebookBundle,
        company_rules: Iterable[ComplianceRuleSpec] = (),
    ) -> "RuleResolver":
        return cls(bundle.document_types, list(bundle.rules) + list(company_rules))

    # =====================================================
    # Public API
    # =====================================================

    def resolve(self, doc_type: str, company_id: Optional[str] = None) -> EffectiveRule:
        dt = self.document_types.get(doc_type)
        if dt is None:
            raise RuleNotFound(doc_type, company_id, ["document_type"])

        org = self._company.get((company_id, doc_type)) if company_id else None
        glob = self._global.get(doc_type)

        values: Dict[str, object] = {}
        sources: Dict[str, str] = {}
        missing: List[str] = []

        for name in FINE_FIELDS:
            value, source = self._pick(name, org, glob)
            if value is None:
                if dt.has_expiry:
                    missing.append(name)
                    continue
                value, source = _EXEMPT_DEFAULTS[name], "exempt"
            values[name] = value
            sources[name] = source

        if missing:
            raise RuleNotFound(doc_type, company_id, missing)

        mandatory, mandatory_source = self._pick("is_mandatory", org, glob)
        if mandatory is None:
            mandatory, mandatory_source = dt.is_mandatory, "catalog"
        sources["is_mandatory"] = mandatory_source

        return EffectiveRule(
            doc_type=doc_type,
            company_id=company_id,
            has_expiry=dt.has_expiry,
            grace_period_days=int(values["grace_period_days"]),
            fine_rate=Decimal(str(values["fine_rate"])),
            fine_type=values["fine_type"],  # type: ignore[arg-type]
            fine_cap=Decimal(str(values["fine_cap"])),
            is_mandatory=bool(mandatory),
            sources=sources,
        )

    def is_mandatory(self, doc_type: str, company_id: Optional[str] = None) -> bool:
        """Mandatory flag only; never raises for missing fine fields."""
        dt = self.document_types.get(doc_type)
        if dt is None:
            return False
        org = self._company.get((company_id, doc_type)) if company_id else None
        value, _ = self._pick("is_mandatory", org, self._global.get(doc_type))
        return dt.is_mandatory if value is None else bool(value)

    def mandatory_types(self, company_id: Optional[str] = None) -> List[DocumentTypeSpec]:
        out = [
            t for t in self.document_types.values()
            if t.is_active and self.is_mandatory(t.doc_type, company_id)
        ]
        return sorted(out, key=lambda t: (t.sort_order, t.doc_type))

    def get_document_type(self, doc_type: str) -> Optional[DocumentTypeSpec]:
        return self.document_types.get(doc_type)

    # =====================================================
    # Internal
    # =====================================================

    @staticmethod
    def _pick(
        name: str,
        org: Optional[ComplianceRuleSpec],
        glob: Optional[ComplianceRuleSpec],
    ) -> Tuple[object, Optional[str]]:
        if org is not None and getattr(org, name) is not None:
            return getattr(org, name), "company"
        if glob is not None and getattr(glob, name) is not None:
            return getattr(glob, name), "global"
        return None, None
