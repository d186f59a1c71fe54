# compliance_engine/repositories/company_repo.py

from __future__ import annotations

from typing import Dict, List, Optional

from compliance_engine.repositories.base import BaseRepository
from compliance_engine.services.compliance.models import CompanyRecord


class CompanyRepository(BaseRepository):
    TABLE = "companies"

    def __init__(self, sb, default_currency: str = "AED"):
        super().__init__(sb)
        self.default_currency = default_currency

    def list_all(self) -> List[CompanyRecord]:
        rows = self._select_all(self.TABLE, "id,name,currency")
        return [self._to_record(r) for r in rows]

    def get(self, company_id: str) -> Optional[CompanyRecord]:
        row = self._first(self.TABLE, "id,name,currency", id=company_id)
        return self._to_record(row) if row else None

    def owner_by_company(self) -> Dict[str, str]:
        """company_id -> owning user_id (receives in-app notifications)."""
        rows = self._select_all(self.TABLE, "id,user_id")
        return {str(r["id"]): str(r["user_id"]) for r in rows if r.get("user_id")}

    def _to_record(self, row: dict) -> CompanyRecord:
        return CompanyRecord(
            company_id=str(row["id"]),
            name=row.get("name") or "",
            currency=row.get("currency") or self.default_currency,
        )
