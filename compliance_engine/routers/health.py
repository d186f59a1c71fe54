from fastapi import APIRouter

from compliance_engine.services.policy.registry import RulebookRegistry

router = APIRouter()


@router.get("")
def health():
    rulebook = None
    if RulebookRegistry.is_loaded():
        meta = RulebookRegistry.get_bundle().meta
        rulebook = {"rulebook_id": meta.rulebook_id, "version": meta.version}
    return {"status": "ok", "rulebook": rulebook}
