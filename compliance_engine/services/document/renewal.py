# compliance_engine/services/document/renewal.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from compliance_engine.core.errors import RenewalError
from compliance_engine.services.compliance.models import DocumentRecord
from compliance_engine.services.policy.resolver import RuleResolver


@dataclass(frozen=True)
class RenewalResult:
    renewed: DocumentRecord
    superseded: DocumentRecord


def renew_document(
    old: DocumentRecord,
    *,
    new_expiry: date,
    resolver: RuleResolver,
    new_issue_date: Optional[date] = None,
    new_document_number: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    file_info: Optional[Dict[str, Any]] = None,
    new_document_id: Optional[str] = None,
) -> RenewalResult:
    """
    Renewal never mutates the expired instance in place: it produces a new
    current record and returns the old one marked superseded_by the new id.
    Number, metadata and the attached file carry over unless replaced.
    """
    dt = resolver.get_document_type(old.doc_type)
    if dt is None:
        raise RenewalError(f"Unknown document type: {old.doc_type}")
    if not dt.has_expiry:
        raise RenewalError(f"{dt.display_name} has no expiry and cannot be renewed")
    if not old.is_current:
        raise RenewalError(f"Document {old.document_id} was already superseded by {old.superseded_by}")
    if old.expiry_date is not None and new_expiry <= old.expiry_date:
        raise RenewalError(
            f"New expiry {new_expiry.isoformat()} must be after current expiry {old.expiry_date.isoformat()}"
        )
    if new_issue_date is not None and new_expiry < new_issue_date:
        raise RenewalError("New expiry date is before the new issue date")

    new_id = new_document_id or str(uuid.uuid4())
    merged_meta = dict(old.metadata or {})
    if metadata:
        merged_meta.update(metadata)

    renewed = DocumentRecord(
        document_id=new_id,
        employee_id=old.employee_id,
        doc_type=old.doc_type,
        document_number=new_document_number or old.document_number,
        issue_date=new_issue_date or old.issue_date,
        expiry_date=new_expiry,
        metadata=merged_meta,
        **_file_columns(old, file_info),
    )
    superseded = old.model_copy(update={"superseded_by": new_id})
    return RenewalResult(renewed=renewed, superseded=superseded)


_FILE_COLUMNS = ("file_url", "file_name", "file_size", "file_type")


def _file_columns(old: DocumentRecord, file_info: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    out = {k: getattr(old, k) for k in _FILE_COLUMNS}
    for k in _FILE_COLUMNS:
        value = (file_info or {}).get(k)
        if value:
            out[k] = value
    return out
