# compliance_engine/services/compliance/alert_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Protocol, Sequence

from compliance_engine.services.compliance.evaluation import DocumentEvaluation
from compliance_engine.services.compliance.notification_scheduler import (
    AlertTier,
    NotificationScheduler,
    TierLedger,
)

logger = logging.getLogger(__name__)


class AlertSink(Protocol):
    def deliver(self, alerts: Sequence[AlertTier]) -> None:
        ...


@dataclass
class AlertRunResult:
    as_of: date
    evaluated_documents: int = 0
    due: int = 0
    emitted: List[AlertTier] = field(default_factory=list)
    already_raised: int = 0


class AlertService:
    """
    One notification pass:
    snapshot ledger -> due_alerts per document -> try_record each -> deliver winners.

    An alert is delivered only by the run whose ledger insert created the key.
    """

    def __init__(
        self,
        *,
        ledger: TierLedger,
        scheduler: Optional[NotificationScheduler] = None,
        sink: Optional[AlertSink] = None,
    ):
        self.ledger = ledger
        self.scheduler = scheduler or NotificationScheduler()
        self.sink = sink

    def run_pass(
        self,
        evaluations: Sequence[DocumentEvaluation],
        as_of: date,
        *,
        currency_by_company: Optional[Dict[str, str]] = None,
        default_currency: str = "AED",
    ) -> AlertRunResult:
        currency_by_company = currency_by_company or {}
        result = AlertRunResult(as_of=as_of, evaluated_documents=len(evaluations))

        prior = self.ledger.snapshot([ev.document_id for ev in evaluations])

        for ev in evaluations:
            currency = currency_by_company.get(ev.company_id or "", default_currency)
            due = self.scheduler.due_alerts(ev, as_of, prior, currency=currency)
            result.due += len(due)
            for alert in due:
                if self.ledger.try_record(alert.key):
                    result.emitted.append(alert)
                else:
                    result.already_raised += 1

        if self.sink is not None and result.emitted:
            self.sink.deliver(result.emitted)

        logger.info(
            "alert_pass as_of=%s documents=%d due=%d emitted=%d already_raised=%d",
            as_of,
            result.evaluated_documents,
            result.due,
            len(result.emitted),
            result.already_raised,
        )
        return result
