from __future__ import annotations

import logging
import threading
from datetime import date, timedelta
from decimal import Decimal

import pytest

from compliance_engine.core.errors import NotFoundError
from compliance_engine.services.compliance.evaluation_service import ComplianceEvaluationService
from compliance_engine.services.compliance.models import CompanyRecord, EmployeeRecord, LifecycleState

AS_OF = date(2026, 2, 19)


@pytest.fixture
def service(make_snapshot, complete_set, make_doc) -> ComplianceEvaluationService:
    employees = [
        EmployeeRecord(employee_id="e1", company_id="c1", name="Ravi Kumar"),
        EmployeeRecord(employee_id="e2", company_id="c1", name="Maria Santos"),
        EmployeeRecord(employee_id="e3", company_id="c2", name="Omar Haddad"),
    ]
    documents = complete_set("e1") + [
        make_doc("visa", employee_id="e2", document_id="e2-visa-old", expiry_date=date(2025, 1, 1), superseded_by="e2-visa"),
        make_doc("visa", employee_id="e2", document_id="e2-visa", expiry_date=AS_OF - timedelta(days=4)),
        make_doc("passport", employee_id="e3", document_id="e3-passport", expiry_date=AS_OF + timedelta(days=12)),
    ]
    companies = [
        CompanyRecord(company_id="c1", name="Acme Contracting"),
        CompanyRecord(company_id="c2", name="Gulf Marine", currency="USD"),
    ]
    snapshot = make_snapshot(employees=employees, documents=documents, companies=companies)
    return ComplianceEvaluationService(snapshot)


def test_evaluate_employee(service) -> None:
    view = service.evaluate_employee("e2", AS_OF)

    assert view.aggregate_status == LifecycleState.PENALTY_ACTIVE
    assert [ev.document_id for ev in view.documents] == ["e2-visa"]
    assert view.total_fine_exposure == Decimal("200.00")
    assert {w.code for w in view.dependency_warnings} == {"MISSING_BLOCKER"}
    assert "passport" in view.missing_mandatory_types


def test_unknown_employee(service) -> None:
    with pytest.raises(NotFoundError):
        service.evaluate_employee("nobody", AS_OF)


def test_evaluate_document(service) -> None:
    ev = service.evaluate_document("e3-passport", AS_OF)
    assert ev.state == LifecycleState.EXPIRING_SOON
    assert ev.company_id == "c2"
    assert ev.days_until_expiry == 12

    with pytest.raises(NotFoundError):
        service.evaluate_document("missing", AS_OF)


def test_batch_is_ordered_and_complete(service) -> None:
    batch = service.evaluate_batch(AS_OF)
    assert [v.employee_id for v in batch.views] == ["e1", "e2", "e3"]
    assert batch.cancelled is False
    assert len(batch.evaluations()) == 9

    only_c2 = service.evaluate_batch(AS_OF, company_id="c2")
    assert [v.employee_id for v in only_c2.views] == ["e3"]


def test_cancelled_batch_reports_skipped(service) -> None:
    cancel = threading.Event()
    cancel.set()
    batch = service.evaluate_batch(AS_OF, cancel_event=cancel)

    assert batch.views == []
    assert batch.cancelled is True
    assert batch.skipped_employee_ids == ["e1", "e2", "e3"]


@pytest.mark.anyio
async def test_async_batch_matches_sync(service) -> None:
    sync = service.evaluate_batch(AS_OF)
    async_ = await service.evaluate_batch_async(AS_OF, concurrency=2)

    assert [(v.employee_id, v.aggregate_status) for v in async_.views] == [
        (v.employee_id, v.aggregate_status) for v in sync.views
    ]


@pytest.mark.anyio
async def test_async_batch_cancel(service) -> None:
    cancel = threading.Event()
    cancel.set()
    batch = await service.evaluate_batch_async(AS_OF, cancel_event=cancel)
    assert batch.skipped_employee_ids == ["e1", "e2", "e3"]


def test_summaries(service) -> None:
    c1 = service.company_summary("c1", AS_OF)
    assert c1.currency == "AED"
    assert c1.total_employees == 2
    assert c1.complete_employees == 1
    assert c1.completion_rate == 0.5
    assert c1.total_fine_exposure == Decimal("200.00")

    c2 = service.company_summary("c2", AS_OF)
    assert c2.currency == "USD"
    assert c2.employee_status_counts["expiring_soon"] == 1

    g = service.global_summary(AS_OF)
    assert g.scope == "global"
    assert g.total_employees == 3
    assert g.total_documents == 9
    assert g.completion_rate == round(1 / 3, 4)

    with pytest.raises(NotFoundError):
        service.company_summary("c9", AS_OF)


def test_expiring_feed(service) -> None:
    items = service.expiring(AS_OF)
    assert [(i.document_id, i.status) for i in items] == [
        ("e2-visa", "expired"),
        ("e3-passport", "warning"),
    ]
    assert service.expiring(AS_OF, company_id="c1")[0].document_id == "e2-visa"


def test_missing_rule_degrades_per_document(make_snapshot, rulebook, make_doc, caplog) -> None:
    """One unresolvable document does not stop the pass."""
    rules = [r for r in rulebook.rules if r.doc_type != "trade_license"]
    snapshot = make_snapshot(
        employees=[EmployeeRecord(employee_id="e1", company_id="c1")],
        documents=[
            make_doc("trade_license", expiry_date=AS_OF - timedelta(days=100)),
            make_doc("visa", expiry_date=AS_OF + timedelta(days=200)),
        ],
        rules=rules,
    )
    service = ComplianceEvaluationService(snapshot)

    with caplog.at_level(logging.WARNING):
        view = service.evaluate_employee("e1", AS_OF)

    states = {ev.doc_type: ev for ev in view.documents}
    assert states["trade_license"].state == LifecycleState.RULE_MISSING
    assert states["trade_license"].fine_amount == 0
    assert "trade_license" in states["trade_license"].rule_error
    assert states["visa"].state == LifecycleState.VALID
    assert view.aggregate_status == LifecycleState.RULE_MISSING
    assert any("rule_missing" in r.getMessage() for r in caplog.records)


def test_unknown_document_type_is_rule_missing(make_snapshot, make_doc) -> None:
    snapshot = make_snapshot(
        employees=[EmployeeRecord(employee_id="e1", company_id="c1")],
        documents=[make_doc("driving_license")],
    )
    view = ComplianceEvaluationService(snapshot).evaluate_employee("e1", AS_OF)
    assert view.documents[0].state == LifecycleState.RULE_MISSING
    assert view.documents[0].display_name == "driving_license"


def test_currency_defaults(service) -> None:
    assert service.currency_for("c1") == "AED"
    assert service.currency_for("c2") == "USD"
    assert service.currency_for(None) == "AED"
    assert service.currency_map() == {"c1": "AED", "c2": "USD"}
