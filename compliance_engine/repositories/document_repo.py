# compliance_engine/repositories/document_repo.py

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from compliance_engine.core.errors import RenewalConflict
from compliance_engine.repositories.base import BaseRepository
from compliance_engine.services.compliance.models import DocumentRecord

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id,employee_id,document_type,document_number,issue_date,expiry_date,"
    "metadata,file_url,file_name,file_size,file_type,superseded_by,created_at"
)


class DocumentRepository(BaseRepository):
    TABLE = "documents"

    def __init__(self, sb):
        super().__init__(sb)

    # -------------------------------------------------
    # Read
    # -------------------------------------------------
    def get(self, document_id: str) -> Optional[DocumentRecord]:
        row = self._first(self.TABLE, _COLUMNS, id=document_id)
        return self._to_record(row) if row else None

    def list_all(self) -> List[DocumentRecord]:
        return [self._to_record(r) for r in self._select_all(self.TABLE, _COLUMNS)]

    def list_by_employees(self, employee_ids: Iterable[str]) -> List[DocumentRecord]:
        ids = list(employee_ids)
        if not ids:
            return []
        res = (
            self.sb
            .table(self.TABLE)
            .select(_COLUMNS)
            .in_("employee_id", ids)
            .execute()
        )
        return [self._to_record(r) for r in (res.data or [])]

    # -------------------------------------------------
    # Write
    # -------------------------------------------------
    def insert_many(self, documents: Iterable[DocumentRecord]) -> List[Dict[str, Any]]:
        payload = [self._to_row(d) for d in documents]
        if not payload:
            return []
        res = self.sb.table(self.TABLE).insert(self._encode(payload)).execute()
        return res.data or []

    def save_renewal(self, *, renewed: DocumentRecord, superseded: DocumentRecord) -> None:
        """
        Insert the new instance, then claim the old one.

        The claim only matches while superseded_by is still NULL, so of two
        concurrent renewals exactly one wins. The loser's inserted row is
        removed and RenewalConflict is raised.
        """
        self.sb.table(self.TABLE).insert(self._encode(self._to_row(renewed))).execute()
        res = (
            self.sb
            .table(self.TABLE)
            .update({"superseded_by": renewed.document_id})
            .eq("id", superseded.document_id)
            .is_("superseded_by", "null")
            .execute()
        )
        if res.data:
            return

        self.sb.table(self.TABLE).delete().eq("id", renewed.document_id).execute()
        logger.warning(
            "renewal_conflict document_id=%s discarded=%s",
            superseded.document_id,
            renewed.document_id,
        )
        raise RenewalConflict(f"Document {superseded.document_id} was already renewed")


    # -------------------------------------------------
    # Mapping
    # -------------------------------------------------
    def _to_record(self, row: Dict[str, Any]) -> DocumentRecord:
        return DocumentRecord(
            document_id=str(row["id"]),
            employee_id=str(row["employee_id"]),
            doc_type=row.get("document_type") or "",
            document_number=row.get("document_number"),
            issue_date=row.get("issue_date") or None,
            expiry_date=row.get("expiry_date") or None,
            metadata=row.get("metadata") or {},
            file_url=row.get("file_url"),
            file_name=row.get("file_name"),
            file_size=row.get("file_size"),
            file_type=row.get("file_type"),
            superseded_by=row.get("superseded_by"),
            created_at=row.get("created_at"),
        )

    def _to_row(self, d: DocumentRecord) -> Dict[str, Any]:
        return {
            "id": d.document_id,
            "employee_id": d.employee_id,
            "document_type": d.doc_type,
            "document_number": d.document_number,
            "issue_date": d.issue_date,
            "expiry_date": d.expiry_date,
            "metadata": d.metadata or {},
            "file_url": d.file_url,
            "file_name": d.file_name,
            "file_size": d.file_size,
            "file_type": d.file_type,
            "superseded_by": d.superseded_by,
        }
