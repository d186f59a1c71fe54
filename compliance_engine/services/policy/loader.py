import logging
import yaml
from pathlib import Path
from pydantic import ValidationError

from compliance_engine.core.errors import ConfigError, RulebookError
from compliance_engine.services.policy.schema import RulebookBundle

logger = logging.getLogger(__name__)

DEFAULT_RULEBOOK_PATH = Path(__file__).resolve().parents[2] / "policies" / "uae_manpower_rulebook_v1.yaml"


def load_rulebook_from_file(path: str | Path | None = None) -> RulebookBundle:

    p = Path(path) if path else DEFAULT_RULEBOOK_PATH

    if not p.exists():
        raise ConfigError(f"Rulebook file not found: {p}")

    with open(p, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    try:
        bundle = RulebookBundle(**raw)
    except ValidationError as e:
        raise RulebookError(f"Invalid rulebook {p}: {e}") from e

    _check_unique(bundle)

    logger.info(
        "rulebook loaded id=%s version=%s document_types=%d rules=%d",
        bundle.meta.rulebook_id,
        bundle.meta.version,
        len(bundle.document_types),
        len(bundle.rules),
    )
    return bundle


def _check_unique(bundle: RulebookBundle) -> None:
    seen_types = set()
    for t in bundle.document_types:
        if t.doc_type in seen_types:
            raise RulebookError(f"Duplicate document type in rulebook: {t.doc_type}")
        seen_types.add(t.doc_type)

    seen_rules = set()
    for r in bundle.rules:
        key = (r.company_id, r.doc_type)
        if key in seen_rules:
            raise RulebookError(f"Duplicate compliance rule: company_id={r.company_id} doc_type={r.doc_type}")
        seen_rules.add(key)
