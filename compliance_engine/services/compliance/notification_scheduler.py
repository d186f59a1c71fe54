# compliance_engine/services/compliance/notification_scheduler.py
"""
Notification Scheduler

Decides which alert tiers are due for one evaluated document.

Ledger keys are (document_id, tier, bucket):
- expiry tiers   -> bucket = expiry_date  (a new expiry starts a new cycle)
- daily tiers    -> bucket = as_of        (one alert per day)

due_alerts() is pure: it reads a ledger snapshot and never writes.
Recording happens through TierLedger.try_record(), an atomic
insert-if-absent, so overlapping runs emit each alert at most once.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Literal, Optional, Protocol, Set, Tuple

from compliance_engine.services.compliance.evaluation import DocumentEvaluation
from compliance_engine.services.compliance.models import LifecycleState

Severity = Literal["info", "warning", "critical"]

EXPIRY_TIERS: Tuple[Tuple[str, int], ...] = (
    ("expiry_90d", 90),
    ("expiry_60d", 60),
    ("expiry_30d", 30),
    ("expiry_15d", 15),
    ("expiry_7d", 7),
)
GRACE_DAILY = "grace_daily"
PENALTY_DAILY = "penalty_daily"
DAILY_TIERS = frozenset({GRACE_DAILY, PENALTY_DAILY})

_TIER_SEVERITY: Dict[str, Severity] = {
    "expiry_90d": "info",
    "expiry_60d": "info",
    "expiry_30d": "warning",
    "expiry_15d": "warning",
    "expiry_7d": "critical",
    GRACE_DAILY: "warning",
    PENALTY_DAILY: "critical",
}


@dataclass(frozen=True)
class LedgerKey:
    document_id: str
    tier: str
    bucket: date


@dataclass(frozen=True)
class AlertTier:
    document_id: str
    employee_id: str
    company_id: Optional[str]
    doc_type: str
    tier: str
    bucket: date
    severity: Severity
    title: str
    message: str
    days_until_expiry: Optional[int]
    fine_amount: Decimal
    currency: str

    @property
    def key(self) -> LedgerKey:
        return LedgerKey(self.document_id, self.tier, self.bucket)


# =========================================================
# Ledger
# =========================================================

class TierLedgerSnapshot:
    """Read-only view of already-raised tiers."""

    def __init__(self, keys: Iterable[LedgerKey] = ()):
        self._keys: Set[LedgerKey] = set(keys)
        self._last: Dict[Tuple[str, str], date] = {}
        for k in self._keys:
            cur = self._last.get((k.document_id, k.tier))
            if cur is None or k.bucket > cur:
                self._last[(k.document_id, k.tier)] = k.bucket

    def __contains__(self, key: LedgerKey) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def last_bucket(self, document_id: str, tier: str) -> Optional[date]:
        return self._last.get((document_id, tier))


class TierLedger(Protocol):
    def try_record(self, key: LedgerKey) -> bool:
        """Insert the key; True only for the caller whose insert created it."""
        ...

    def snapshot(self, document_ids: Optional[Iterable[str]] = None) -> TierLedgerSnapshot:
        ...


class InMemoryTierLedger:
    def __init__(self, keys: Iterable[LedgerKey] = ()):
        self._lock = threading.Lock()
        self._keys: Set[LedgerKey] = set(keys)

    def try_record(self, key: LedgerKey) -> bool:
        with self._lock:
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    def snapshot(self, document_ids: Optional[Iterable[str]] = None) -> TierLedgerSnapshot:
        with self._lock:
            keys = list(self._keys)
        if document_ids is not None:
            wanted = set(document_ids)
            keys = [k for k in keys if k.document_id in wanted]
        return TierLedgerSnapshot(keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)


# =========================================================
# Scheduler
# =========================================================

class NotificationScheduler:
    def due_alerts(
        self,
        evaluation: DocumentEvaluation,
        as_of: date,
        prior: TierLedgerSnapshot,
        *,
        currency: str = "AED",
    ) -> List[AlertTier]:
        rule = evaluation.rule
        doc = evaluation.document
        if rule is None or not rule.has_expiry or doc.expiry_date is None:
            return []

        state = evaluation.state
        due: List[AlertTier] = []

        if state in (LifecycleState.VALID, LifecycleState.EXPIRING_SOON):
            days_left = (doc.expiry_date - as_of).days
            if days_left < 0:
                return []
            for tier, threshold in EXPIRY_TIERS:
                if days_left > threshold:
                    continue
                key = LedgerKey(doc.document_id, tier, doc.expiry_date)
                if key in prior:
                    continue
                due.append(self._expiry_alert(evaluation, tier, threshold, days_left, currency))
            return due

        if state == LifecycleState.IN_GRACE:
            tier = GRACE_DAILY
        elif state == LifecycleState.PENALTY_ACTIVE:
            tier = PENALTY_DAILY
        else:
            return []

        last = prior.last_bucket(doc.document_id, tier)
        if last is not None and as_of <= last:
            return []

        if tier == GRACE_DAILY:
            due.append(self._grace_alert(evaluation, as_of, currency))
        else:
            due.append(self._penalty_alert(evaluation, as_of, currency))
        return due

    # =====================================================
    # Message builders
    # =====================================================

    def _expiry_alert(
        self,
        ev: DocumentEvaluation,
        tier: str,
        threshold: int,
        days_left: int,
        currency: str,
    ) -> AlertTier:
        doc = ev.document
        when = "today" if days_left == 0 else f"in {days_left} day{'s' if days_left != 1 else ''}"
        return AlertTier(
            document_id=doc.document_id,
            employee_id=doc.employee_id,
            company_id=ev.company_id,
            doc_type=doc.doc_type,
            tier=tier,
            bucket=doc.expiry_date,  # type: ignore[arg-type]
            severity=_TIER_SEVERITY[tier],
            title=f"{ev.display_name} expires {when}",
            message=(
                f"{ev.display_name} {doc.document_number or ''}".strip()
                + f" expires on {doc.expiry_date.isoformat()} ({threshold}-day notice)."  # type: ignore[union-attr]
            ),
            days_until_expiry=days_left,
            fine_amount=ev.fine_amount,
            currency=currency,
        )

    def _grace_alert(self, ev: DocumentEvaluation, as_of: date, currency: str) -> AlertTier:
        doc = ev.document
        left = ev.grace_days_remaining or 0
        return AlertTier(
            document_id=doc.document_id,
            employee_id=doc.employee_id,
            company_id=ev.company_id,
            doc_type=doc.doc_type,
            tier=GRACE_DAILY,
            bucket=as_of,
            severity=_TIER_SEVERITY[GRACE_DAILY],
            title=f"{ev.display_name}: {left} grace day{'s' if left != 1 else ''} left",
            message=(
                f"{ev.display_name} expired on {doc.expiry_date.isoformat()}. "  # type: ignore[union-attr]
                f"{left} grace days left before fines start."
            ),
            days_until_expiry=ev.days_until_expiry,
            fine_amount=ev.fine_amount,
            currency=currency,
        )

    def _penalty_alert(self, ev: DocumentEvaluation, as_of: date, currency: str) -> AlertTier:
        doc = ev.document
        fine = ev.fine
        suffix = " Fine cap reached." if fine.at_cap else ""
        return AlertTier(
            document_id=doc.document_id,
            employee_id=doc.employee_id,
            company_id=ev.company_id,
            doc_type=doc.doc_type,
            tier=PENALTY_DAILY,
            bucket=as_of,
            severity=_TIER_SEVERITY[PENALTY_DAILY],
            title=f"{ev.display_name}: fine accruing",
            message=(
                f"{ev.display_name} is {fine.days_beyond_grace} days beyond its grace period. "
                f"{currency} {fine.amount} accrued so far.{suffix}"
            ),
            days_until_expiry=ev.days_until_expiry,
            fine_amount=fine.amount,
            currency=currency,
        )
