from __future__ import annotations

from datetime import date, timedelta

from compliance_engine.services.compliance.fine_calculator import FineCalculator
from compliance_engine.services.compliance.lifecycle import (
    days_until_expiry,
    evaluate_lifecycle,
    missing_fields,
)
from compliance_engine.services.compliance.models import LifecycleState

EXPIRY = date(2026, 2, 19)


def _state(resolver, doc, as_of, **kw):
    dt = resolver.get_document_type(doc.doc_type)
    rule = resolver.resolve(doc.doc_type)
    return evaluate_lifecycle(doc, dt, rule, as_of, **kw)


def test_thirty_day_grace_scenarios(resolver, make_doc) -> None:
    """Expiry 2026-02-19, grace 30: +10 days in grace, +45 days penalty."""
    doc = make_doc("emirates_id", expiry_date=EXPIRY)
    rule = resolver.resolve("emirates_id")
    calc = FineCalculator()

    as_of = EXPIRY + timedelta(days=10)
    state = _state(resolver, doc, as_of)
    fine = calc.accrue(doc, rule, state, as_of)
    assert state == LifecycleState.IN_GRACE
    assert fine.grace_days_remaining == 20
    assert fine.amount == 0

    as_of = EXPIRY + timedelta(days=45)
    state = _state(resolver, doc, as_of)
    fine = calc.accrue(doc, rule, state, as_of)
    assert state == LifecycleState.PENALTY_ACTIVE
    assert fine.grace_days_remaining == 0


def test_boundaries(resolver, make_doc) -> None:
    doc = make_doc("emirates_id", expiry_date=EXPIRY)

    assert _state(resolver, doc, EXPIRY - timedelta(days=31)) == LifecycleState.VALID
    assert _state(resolver, doc, EXPIRY - timedelta(days=30)) == LifecycleState.EXPIRING_SOON
    assert _state(resolver, doc, EXPIRY) == LifecycleState.EXPIRING_SOON
    assert _state(resolver, doc, EXPIRY + timedelta(days=1)) == LifecycleState.IN_GRACE
    assert _state(resolver, doc, EXPIRY + timedelta(days=30)) == LifecycleState.IN_GRACE
    assert _state(resolver, doc, EXPIRY + timedelta(days=31)) == LifecycleState.PENALTY_ACTIVE


def test_zero_grace_goes_straight_to_penalty(resolver, make_doc) -> None:
    doc = make_doc("visa", expiry_date=EXPIRY)
    assert _state(resolver, doc, EXPIRY + timedelta(days=1)) == LifecycleState.PENALTY_ACTIVE


def test_expiring_soon_window_is_configurable(resolver, make_doc) -> None:
    doc = make_doc("passport", expiry_date=EXPIRY)
    as_of = EXPIRY - timedelta(days=45)
    assert _state(resolver, doc, as_of) == LifecycleState.VALID
    assert _state(resolver, doc, as_of, expiring_soon_days=60) == LifecycleState.EXPIRING_SOON


def test_incomplete_outranks_every_date_state(resolver, make_doc) -> None:
    """Long-expired but missing its number: still INCOMPLETE."""
    as_of = EXPIRY + timedelta(days=400)
    for doc in (
        make_doc("visa", expiry_date=EXPIRY, document_number=None),
        make_doc("visa", expiry_date=EXPIRY, document_number="   "),
        make_doc("visa", expiry_date=None),
        make_doc("visa", expiry_date=EXPIRY, issue_date=None),
    ):
        assert _state(resolver, doc, as_of) == LifecycleState.INCOMPLETE


def test_inverted_dates_are_incomplete(resolver, make_doc) -> None:
    doc = make_doc("passport", issue_date=date(2026, 5, 1), expiry_date=date(2026, 4, 1))
    assert _state(resolver, doc, date(2026, 1, 1)) == LifecycleState.INCOMPLETE


def test_required_metadata(resolver, make_doc) -> None:
    dt = resolver.get_document_type("other")
    bare = make_doc("other")
    named = make_doc("other", metadata={"custom_name": "Site pass"})

    assert missing_fields(bare, dt) == ["metadata.custom_name"]
    assert _state(resolver, bare, date(2026, 1, 1)) == LifecycleState.INCOMPLETE
    assert _state(resolver, named, date(2026, 1, 1)) == LifecycleState.VALID


def test_missing_fields_lists_everything_unset(resolver, make_doc) -> None:
    doc = make_doc("passport", document_number=None, issue_date=None, expiry_date=None)
    assert missing_fields(doc, resolver.get_document_type("passport")) == [
        "document_number",
        "issue_date",
        "expiry_date",
    ]


def test_expiry_exempt_type_is_valid_or_incomplete(resolver, make_doc) -> None:
    contract = make_doc("employment_contract", issue_date=None, expiry_date=None)
    far_future = date(2100, 1, 1)
    assert _state(resolver, contract, far_future) == LifecycleState.VALID

    unnumbered = make_doc("employment_contract", document_number=None, expiry_date=None)
    assert _state(resolver, unnumbered, far_future) == LifecycleState.INCOMPLETE

    # a stray past expiry date never makes an exempt type expire
    dated = make_doc("employment_contract", expiry_date=date(2020, 1, 1), issue_date=date(2019, 1, 1))
    assert _state(resolver, dated, far_future) == LifecycleState.VALID


def test_days_until_expiry(make_doc) -> None:
    assert days_until_expiry(make_doc("visa", expiry_date=EXPIRY), date(2026, 2, 9)) == 10
    assert days_until_expiry(make_doc("visa", expiry_date=EXPIRY), date(2026, 2, 21)) == -2
    assert days_until_expiry(make_doc("visa", expiry_date=None), EXPIRY) is None
