from abc import ABC
from datetime import datetime, date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union
from uuid import UUID
from fastapi.encoders import jsonable_encoder


class BaseRepository(ABC):
    """
    Thin wrapper over one supabase-py client.
    Subclasses set TABLE and map rows <-> engine records.
    """

    TABLE: str = ""

    def __init__(self, sb):
        self.sb = sb

    def _encode(self, payload: Union[Dict[str, Any], List[Dict[str, Any]]]):
        """Dates, Decimals, UUIDs and pydantic models -> JSON-safe values."""
        return jsonable_encoder(payload)

    def _select_all(self, table: str, columns: str = "*", **eq) -> List[Dict[str, Any]]:
        q = self.sb.table(table).select(columns)
        for k, v in eq.items():
            q = q.eq(k, v)
        res = q.execute()
        return res.data or []

    def _first(self, table: str, columns: str = "*", **eq) -> Optional[Dict[str, Any]]:
        q = self.sb.table(table).select(columns)
        for k, v in eq.items():
            q = q.eq(k, v)
        res = q.limit(1).execute()
        return res.data[0] if res.data else None


def json_safe(v):
    """Recursive JSON coercion for payloads built outside pydantic (ledger keys)."""
    if isinstance(v, (datetime, date)):
        return v.isoformat()
    if isinstance(v, Decimal):
        return str(v)
    if isinstance(v, UUID):
        return str(v)
    if isinstance(v, dict):
        return {k: json_safe(x) for k, x in v.items()}
    if isinstance(v, (list, tuple)):
        return [json_safe(x) for x in v]
    return v
