from __future__ import annotations

from datetime import date

from compliance_engine.services.compliance.dependency_checker import add_months, check_dependencies

AS_OF = date(2026, 2, 19)
FAR = date(2030, 1, 1)


def _codes(warnings):
    return {(w.blocker_type, w.blocked_type): w.code for w in warnings}


def test_visa_without_any_blocker_on_file(make_doc) -> None:
    visa = make_doc("visa", expiry_date=FAR)
    warnings = check_dependencies([visa], AS_OF)

    assert _codes(warnings) == {
        ("passport", "visa"): "MISSING_BLOCKER",
        ("iloe_insurance", "visa"): "MISSING_BLOCKER",
        ("medical_fitness", "visa"): "MISSING_BLOCKER",
    }
    assert all(w.blocked_document_id == visa.document_id for w in warnings)
    assert all(w.blocker_document_id is None for w in warnings)
    assert "Passport is not on file" in warnings[0].reason


def test_untracked_blocked_type_is_not_checked(make_doc) -> None:
    passport = make_doc("passport", expiry_date=date(2025, 1, 1))
    assert check_dependencies([passport], AS_OF) == []


def test_expired_passport_blocks_visa(make_doc) -> None:
    docs = [
        make_doc("passport", expiry_date=date(2026, 1, 1)),
        make_doc("visa", expiry_date=FAR),
        make_doc("iloe_insurance", expiry_date=FAR),
        make_doc("medical_fitness", expiry_date=FAR),
    ]
    warnings = check_dependencies(docs, AS_OF)

    assert _codes(warnings) == {("passport", "visa"): "BLOCKER_EXPIRED"}
    assert "2026-01-01" in warnings[0].reason


def test_passport_needs_six_months_past_visa_expiry(make_doc) -> None:
    docs = [
        make_doc("passport", expiry_date=date(2026, 11, 30)),
        make_doc("visa", expiry_date=date(2026, 6, 1)),
        make_doc("iloe_insurance", expiry_date=FAR),
        make_doc("medical_fitness", expiry_date=FAR),
    ]
    warnings = check_dependencies(docs, AS_OF)
    assert _codes(warnings) == {("passport", "visa"): "INSUFFICIENT_VALIDITY"}
    assert "2026-12-01" in warnings[0].reason

    docs[0] = make_doc("passport", expiry_date=date(2026, 12, 1))
    assert check_dependencies(docs, AS_OF) == []


def test_validity_window_uses_as_of_when_visa_already_expired(make_doc) -> None:
    docs = [
        make_doc("passport", expiry_date=date(2026, 7, 1)),
        make_doc("visa", expiry_date=date(2026, 1, 1)),
        make_doc("iloe_insurance", expiry_date=FAR),
        make_doc("medical_fitness", expiry_date=FAR),
    ]
    # required until 2026-08-19
    assert _codes(check_dependencies(docs, AS_OF)) == {("passport", "visa"): "INSUFFICIENT_VALIDITY"}


def test_blocker_without_expiry_date(make_doc) -> None:
    docs = [
        make_doc("visa", expiry_date=None, document_id="v1"),
        make_doc("emirates_id", expiry_date=FAR, document_id="eid1"),
    ]
    warnings = [w for w in check_dependencies(docs, AS_OF) if w.blocked_type == "emirates_id"]

    assert len(warnings) == 1
    assert warnings[0].code == "MISSING_BLOCKER"
    assert warnings[0].blocker_document_id == "v1"
    assert "no expiry date" in warnings[0].reason


def test_warnings_are_non_exclusive(make_doc) -> None:
    docs = [
        make_doc("visa", expiry_date=date(2026, 1, 1)),
        make_doc("emirates_id", expiry_date=FAR),
        make_doc("work_permit", expiry_date=FAR),
        make_doc("health_insurance", expiry_date=date(2026, 2, 1)),
    ]
    codes = _codes(check_dependencies(docs, AS_OF))

    assert codes[("health_insurance", "work_permit")] == "BLOCKER_EXPIRED"
    assert codes[("visa", "emirates_id")] == "BLOCKER_EXPIRED"
    assert codes[("passport", "visa")] == "MISSING_BLOCKER"


def test_superseded_and_duplicate_blockers(make_doc) -> None:
    docs = [
        make_doc("visa", expiry_date=FAR),
        make_doc("iloe_insurance", expiry_date=FAR),
        make_doc("medical_fitness", expiry_date=FAR),
        make_doc("passport", expiry_date=date(2040, 1, 1), superseded_by="p-new"),
        make_doc("passport", expiry_date=date(2026, 1, 1)),
        make_doc("passport", expiry_date=date(2035, 1, 1)),
    ]
    # the superseded record is history; of the current ones the latest expiry wins
    assert check_dependencies(docs, AS_OF) == []
    assert _codes(check_dependencies(docs[:5], AS_OF)) == {("passport", "visa"): "BLOCKER_EXPIRED"}


def test_add_months_clamps_to_month_end() -> None:
    assert add_months(date(2026, 8, 31), 6) == date(2027, 2, 28)
    assert add_months(date(2023, 8, 31), 6) == date(2024, 2, 29)
    assert add_months(date(2026, 2, 19), 6) == date(2026, 8, 19)
    assert add_months(date(2026, 11, 15), 2) == date(2027, 1, 15)
