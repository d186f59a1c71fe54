from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from compliance_engine.core.errors import RuleNotFound
from compliance_engine.services.compliance.snapshot_loader import SnapshotLoader
from compliance_engine.services.policy.registry import RulebookRegistry
from compliance_engine.services.result.compliance_view_mapper import map_rule

router = APIRouter()


@router.get("/meta")
def get_rulebook_meta():
    bundle = RulebookRegistry.get_bundle()
    return bundle.meta.model_dump()


@router.get("/document-types")
def list_document_types(request: Request):
    loader = SnapshotLoader(
        request.state.sb,
        rulebook=RulebookRegistry.get_bundle(),
        default_currency=RulebookRegistry.default_currency(),
    )
    document_types, _ = loader.load_rules()
    document_types = sorted(document_types, key=lambda t: (t.sort_order, t.doc_type))
    return [t.model_dump() for t in document_types]


@router.get("/resolve")
def resolve_rule(request: Request, doc_type: str, company_id: Optional[str] = None):
    loader = SnapshotLoader(
        request.state.sb,
        rulebook=RulebookRegistry.get_bundle(),
        default_currency=RulebookRegistry.default_currency(),
    )
    resolver = loader.load_resolver(company_id)
    try:
        rule = resolver.resolve(doc_type, company_id)
    except RuleNotFound as e:
        raise HTTPException(status_code=400, detail=str(e))
    return map_rule(rule)
