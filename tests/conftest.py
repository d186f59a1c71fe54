# tests/conftest.py
from __future__ import annotations

import threading
from datetime import date
from typing import Any, Callable, Dict, List, Optional

import pytest

from compliance_engine.services.compliance.models import (
    CompanyRecord,
    ComplianceSnapshot,
    DocumentRecord,
    EmployeeRecord,
)
from compliance_engine.services.policy.loader import load_rulebook_from_file
from compliance_engine.services.policy.registry import RulebookRegistry
from compliance_engine.services.policy.resolver import RuleResolver
from compliance_engine.services.policy.schema import RulebookBundle

MANDATORY_TYPES = (
    "passport",
    "visa",
    "emirates_id",
    "work_permit",
    "health_insurance",
    "iloe_insurance",
    "medical_fitness",
)


# =========================================================
# Rulebook
# =========================================================

@pytest.fixture(scope="session")
def rulebook() -> RulebookBundle:
    """The packaged UAE rulebook, loaded once."""
    return load_rulebook_from_file()


@pytest.fixture
def resolver(rulebook: RulebookBundle) -> RuleResolver:
    return RuleResolver.from_bundle(rulebook)


@pytest.fixture
def loaded_registry(rulebook: RulebookBundle):
    RulebookRegistry.load(rulebook)
    yield RulebookRegistry
    RulebookRegistry.clear()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


# =========================================================
# Record factories
# =========================================================

@pytest.fixture
def make_doc() -> Callable[..., DocumentRecord]:
    """Complete document by default; override any field to break it."""
    counter = {"n": 0}

    def _make(
        doc_type: str,
        *,
        employee_id: str = "e1",
        expiry_date: Optional[date] = date(2030, 1, 1),
        issue_date: Optional[date] = date(2024, 1, 1),
        document_number: Optional[str] = "N-0001",
        metadata: Optional[Dict[str, Any]] = None,
        document_id: Optional[str] = None,
        superseded_by: Optional[str] = None,
    ) -> DocumentRecord:
        counter["n"] += 1
        return DocumentRecord(
            document_id=document_id or f"{doc_type}-{counter['n']}",
            employee_id=employee_id,
            doc_type=doc_type,
            document_number=document_number,
            issue_date=issue_date,
            expiry_date=expiry_date,
            metadata=metadata or {},
            superseded_by=superseded_by,
        )

    return _make


@pytest.fixture
def complete_set(make_doc) -> Callable[..., List[DocumentRecord]]:
    """One complete record per mandatory type for an employee."""

    def _set(employee_id: str, expiry_date: date = date(2030, 1, 1)) -> List[DocumentRecord]:
        return [
            make_doc(t, employee_id=employee_id, expiry_date=expiry_date, document_id=f"{employee_id}-{t}")
            for t in MANDATORY_TYPES
        ]

    return _set


@pytest.fixture
def make_snapshot(rulebook: RulebookBundle) -> Callable[..., ComplianceSnapshot]:
    def _snapshot(
        *,
        employees: List[EmployeeRecord],
        documents: List[DocumentRecord],
        companies: Optional[List[CompanyRecord]] = None,
        rules=None,
    ) -> ComplianceSnapshot:
        return ComplianceSnapshot(
            companies=companies
            if companies is not None
            else [CompanyRecord(company_id="c1", name="Acme Contracting")],
            employees=employees,
            documents=documents,
            document_types=list(rulebook.document_types),
            rules=list(rulebook.rules) if rules is None else rules,
        )

    return _snapshot


# =========================================================
# Supabase query-builder fake
# =========================================================

class _Result:
    def __init__(self, data: List[dict]):
        self.data = data


class FakeQuery:
    def __init__(self, sb: "FakeSupabase", table: str):
        self.sb = sb
        self.table_name = table
        self._op = "select"
        self._payload: Any = None
        self._filters: List[Callable[[dict], bool]] = []
        self._limit: Optional[int] = None
        self._on_conflict: Optional[str] = None
        self._ignore_duplicates = False

    # ----- builders -----
    def select(self, columns: str = "*"):
        self._op = "select"
        return self

    def insert(self, payload):
        self._op, self._payload = "insert", payload
        return self

    def update(self, payload: dict):
        self._op, self._payload = "update", payload
        return self

    def delete(self):
        self._op = "delete"
        return self

    def upsert(self, payload, on_conflict: str = "", ignore_duplicates: bool = False):
        self._op, self._payload = "upsert", payload
        self._on_conflict = on_conflict
        self._ignore_duplicates = ignore_duplicates
        return self

    def eq(self, column: str, value):
        self._filters.append(lambda r: r.get(column) == value)
        return self

    def in_(self, column: str, values):
        wanted = set(values)
        self._filters.append(lambda r: r.get(column) in wanted)
        return self

    def is_(self, column: str, value):
        if value == "null":
            self._filters.append(lambda r: r.get(column) is None)
        else:
            self._filters.append(lambda r: r.get(column) == value)
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    # ----- execution -----
    def execute(self) -> _Result:
        with self.sb.lock:
            rows = self.sb.tables.setdefault(self.table_name, [])
            if self._op == "insert":
                return _Result(self._insert(rows))
            if self._op == "upsert":
                return _Result(self._upsert(rows))

            matched = [r for r in rows if all(f(r) for f in self._filters)]
            if self._op == "delete":
                rows[:] = [r for r in rows if not any(r is m for m in matched)]
                return _Result([dict(r) for r in matched])
            if self._op == "update":
                for r in matched:
                    r.update(self._payload)
                return _Result([dict(r) for r in matched])

            if self._limit is not None:
                matched = matched[: self._limit]
            return _Result([dict(r) for r in matched])

    def _insert(self, rows: List[dict]) -> List[dict]:
        new = self._payload if isinstance(self._payload, list) else [self._payload]
        rows.extend(dict(r) for r in new)
        return [dict(r) for r in new]

    def _upsert(self, rows: List[dict]) -> List[dict]:
        cols = [c.strip() for c in (self._on_conflict or "").split(",") if c.strip()]
        new = self._payload if isinstance(self._payload, list) else [self._payload]
        written: List[dict] = []
        for row in new:
            existing = next(
                (r for r in rows if cols and all(r.get(c) == row.get(c) for c in cols)),
                None,
            )
            if existing is not None:
                if self._ignore_duplicates:
                    continue
                existing.update(row)
                written.append(dict(existing))
            else:
                rows.append(dict(row))
                written.append(dict(row))
        return written


class FakeSupabase:
    """Just enough of supabase-py's table() builder for the repositories."""

    def __init__(self, tables: Optional[Dict[str, List[dict]]] = None):
        self.tables: Dict[str, List[dict]] = {k: [dict(r) for r in v] for k, v in (tables or {}).items()}
        self.lock = threading.Lock()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.fixture
def fake_sb() -> Callable[..., FakeSupabase]:
    return FakeSupabase
