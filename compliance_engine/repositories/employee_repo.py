# compliance_engine/repositories/employee_repo.py

from __future__ import annotations

from typing import List, Optional

from compliance_engine.repositories.base import BaseRepository
from compliance_engine.services.compliance.models import EmployeeRecord

_COLUMNS = "id,company_id,name,trade,status"


class EmployeeRepository(BaseRepository):
    TABLE = "employees"

    def __init__(self, sb):
        super().__init__(sb)

    def list_all(self, company_id: Optional[str] = None) -> List[EmployeeRecord]:
        if company_id:
            rows = self._select_all(self.TABLE, _COLUMNS, company_id=company_id)
        else:
            rows = self._select_all(self.TABLE, _COLUMNS)
        return [self._to_record(r) for r in rows]

    def get(self, employee_id: str) -> Optional[EmployeeRecord]:
        row = self._first(self.TABLE, _COLUMNS, id=employee_id)
        return self._to_record(row) if row else None

    def _to_record(self, row: dict) -> EmployeeRecord:
        return EmployeeRecord(
            employee_id=str(row["id"]),
            company_id=str(row["company_id"]),
            name=row.get("name") or "",
            trade=row.get("trade"),
            status=row.get("status") or "active",
        )
