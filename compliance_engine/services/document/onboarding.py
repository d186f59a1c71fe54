# compliance_engine/services/document/onboarding.py
from __future__ import annotations

import uuid
from typing import Callable, List, Optional

from compliance_engine.services.compliance.models import DocumentRecord
from compliance_engine.services.policy.resolver import RuleResolver


def build_onboarding_documents(
    *,
    employee_id: str,
    company_id: Optional[str],
    resolver: RuleResolver,
    existing_types: Optional[set[str]] = None,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> List[DocumentRecord]:
    """
    One empty record per mandatory type (mandatory resolved per company).
    Empty records evaluate as INCOMPLETE until their fields are filled in.
    Types the employee already tracks are skipped, so re-running is safe.
    """
    existing_types = existing_types or set()
    docs: List[DocumentRecord] = []
    for t in resolver.mandatory_types(company_id):
        if t.doc_type in existing_types:
            continue
        docs.append(
            DocumentRecord(
                document_id=id_factory(),
                employee_id=employee_id,
                doc_type=t.doc_type,
            )
        )
    return docs
