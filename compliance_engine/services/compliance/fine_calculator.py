# compliance_engine/services/compliance/fine_calculator.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from compliance_engine.services.compliance.models import DocumentRecord, LifecycleState
from compliance_engine.services.policy.resolver import EffectiveRule

ZERO = Decimal("0")
MONEY = Decimal("0.01")
MONTH_DAYS = 30


# =========================================================
# Result model
# =========================================================

@dataclass(frozen=True)
class FineAssessment:
    amount: Decimal
    raw_amount: Decimal
    grace_days_remaining: Optional[int]
    days_beyond_grace: int
    at_cap: bool


NO_FINE = FineAssessment(
    amount=ZERO,
    raw_amount=ZERO,
    grace_days_remaining=None,
    days_beyond_grace=0,
    at_cap=False,
)


# =========================================================
# Fine Calculator
# - Deterministic, no wall clock
# - Never negative, saturates at cap
# =========================================================

class FineCalculator:
    def accrue(
        self,
        document: DocumentRecord,
        rule: EffectiveRule,
        state: LifecycleState,
        as_of: date,
    ) -> FineAssessment:
        expiry = document.expiry_date
        if expiry is None or state not in (LifecycleState.IN_GRACE, LifecycleState.PENALTY_ACTIVE):
            return NO_FINE

        grace = max(0, rule.grace_period_days)
        days_past_expiry = _floor0((as_of - expiry).days)

        if state == LifecycleState.IN_GRACE:
            return FineAssessment(
                amount=ZERO,
                raw_amount=ZERO,
                grace_days_remaining=_floor0(grace - days_past_expiry),
                days_beyond_grace=0,
                at_cap=False,
            )

        days_beyond = _floor0(days_past_expiry - grace)
        raw = self._raw_amount(rule, days_beyond)
        amount, at_cap = self._clamp(raw, rule.fine_cap)

        return FineAssessment(
            amount=_money(amount),
            raw_amount=_money(raw),
            grace_days_remaining=0,
            days_beyond_grace=days_beyond,
            at_cap=at_cap,
        )

    # =====================================================
    # Accrual by fine type
    # =====================================================

    def _raw_amount(self, rule: EffectiveRule, days_beyond: int) -> Decimal:
        rate = rule.fine_rate if rule.fine_rate > 0 else ZERO
        if rate == 0:
            return ZERO

        if rule.fine_type == "daily":
            return rate * Decimal(days_beyond)

        if rule.fine_type == "monthly":
            months = -(-days_beyond // MONTH_DAYS)  # ceil
            return rate * Decimal(months)

        if rule.fine_type == "one_time":
            return rate

        raise ValueError(f"unknown fine_type={rule.fine_type}")

    def _clamp(self, raw: Decimal, cap: Decimal) -> tuple[Decimal, bool]:
        if raw < 0:
            raw = ZERO
        if cap > 0 and raw >= cap:
            return cap, True
        return raw, False


# =========================================================
# Aggregation helpers
# =========================================================

def total_fines(amounts: Iterable[Decimal]) -> Decimal:
    """Plain sum. All amounts must come from one as_of."""
    total = ZERO
    for a in amounts:
        total += a
    return _money(total)


def burn_rate_contribution(rule: EffectiveRule, state: LifecycleState, fine: FineAssessment) -> Decimal:
    """Per-day growth of exposure: daily fines still below their cap."""
    if state != LifecycleState.PENALTY_ACTIVE:
        return ZERO
    if rule.fine_type != "daily" or fine.at_cap:
        return ZERO
    return rule.fine_rate if rule.fine_rate > 0 else ZERO


def _floor0(n: int) -> int:
    return n if n > 0 else 0


def _money(v: Decimal) -> Decimal:
    return v.quantize(MONEY, rounding=ROUND_HALF_UP)
