from typing import Dict, Optional

from compliance_engine.core.config import settings
from compliance_engine.services.policy.schema import DocumentTypeSpec, RulebookBundle


class RulebookRegistry:
    """
    Lean in-memory rulebook registry
    - load() called once at startup
    - get_bundle() returns the raw RulebookBundle
    - get_document_type() for catalog lookups
    - default_currency() / expiring_soon_days(): env override, else rulebook meta
    """

    _bundle: Optional[RulebookBundle] = None
    _type_index: Optional[Dict[str, DocumentTypeSpec]] = None

    # ---------- LOAD ON STARTUP ----------

    @classmethod
    def load(cls, bundle: RulebookBundle) -> None:
        cls._bundle = bundle
        cls._type_index = bundle.document_type_index()

    @classmethod
    def is_loaded(cls) -> bool:
        return cls._bundle is not None

    @classmethod
    def clear(cls) -> None:
        cls._bundle = None
        cls._type_index = None

    # ---------- RAW BUNDLE ----------

    @classmethod
    def get_bundle(cls) -> RulebookBundle:
        if cls._bundle is None:
            raise RuntimeError("Rulebook not loaded")
        return cls._bundle

    # ---------- CATALOG LOOKUP ----------

    @classmethod
    def get_document_type(cls, doc_type: str) -> Optional[DocumentTypeSpec]:
        if cls._type_index is None:
            raise RuntimeError("Rulebook not loaded")
        return cls._type_index.get(doc_type)

    # ---------- DEFAULTS ----------

    @classmethod
    def default_currency(cls) -> str:
        return settings.DEFAULT_CURRENCY or cls.get_bundle().meta.currency

    @classmethod
    def expiring_soon_days(cls) -> int:
        if settings.EXPIRING_SOON_DAYS is not None:
            return settings.EXPIRING_SOON_DAYS
        return cls.get_bundle().meta.expiring_soon_days
