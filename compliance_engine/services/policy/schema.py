from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field


FineType = Literal["daily", "monthly", "one_time"]


# =========================================================
# META
# =========================================================

class RulebookMeta(BaseModel):
    rulebook_id: str
    version: str
    description: Optional[str] = None
    currency: str = "AED"
    expiring_soon_days: int = Field(default=30, ge=0)


# =========================================================
# DOCUMENT TYPE CATALOG
# =========================================================

class MetadataFieldSpec(BaseModel):
    key: str
    label: str
    type: str = "text"
    options: List[Any] = Field(default_factory=list)
    required: bool = False


class DocumentTypeSpec(BaseModel):
    doc_type: str
    display_name: str
    is_mandatory: bool = False
    has_expiry: bool = True
    number_label: str = "Document Number"
    expiry_label: str = "Expiry Date"
    sort_order: int = 100
    metadata_fields: List[MetadataFieldSpec] = Field(default_factory=list)
    is_active: bool = True

    def required_metadata_keys(self) -> List[str]:
        return [f.key for f in self.metadata_fields if f.required]


# =========================================================
# COMPLIANCE RULE
# company_id None = global rule. Unset fields on a company rule
# fall through to the global rule.
# =========================================================

class ComplianceRuleSpec(BaseModel):
    company_id: Optional[str] = None
    doc_type: str
    grace_period_days: Optional[int] = Field(default=None, ge=0)
    fine_rate: Optional[Decimal] = Field(default=None, ge=0)
    fine_type: Optional[FineType] = None
    fine_cap: Optional[Decimal] = Field(default=None, ge=0)
    is_mandatory: Optional[bool] = None

    @property
    def is_global(self) -> bool:
        return self.company_id is None


# =========================================================
# ROOT
# =========================================================

class RulebookBundle(BaseModel):
    meta: RulebookMeta
    document_types: List[DocumentTypeSpec] = Field(default_factory=list)
    rules: List[ComplianceRuleSpec] = Field(default_factory=list)

    def document_type_index(self) -> Dict[str, DocumentTypeSpec]:
        return {t.doc_type: t for t in self.document_types}
