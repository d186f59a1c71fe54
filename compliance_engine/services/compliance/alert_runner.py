# compliance_engine/services/compliance/alert_runner.py
"""
Supabase-backed notification pass shared by POST /alerts/run and the alert worker:

    snapshot -> async batch evaluation -> AlertService(ledger, in-app sink)
"""

from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Optional

from compliance_engine.repositories.alert_ledger_repo import AlertLedgerRepository
from compliance_engine.repositories.company_repo import CompanyRepository
from compliance_engine.repositories.notification_repo import NotificationRepository
from compliance_engine.services.compliance.alert_service import AlertRunResult, AlertService
from compliance_engine.services.compliance.snapshot_loader import build_evaluation_service
from compliance_engine.services.policy.registry import RulebookRegistry

logger = logging.getLogger(__name__)


async def run_alert_pass(
    sb,
    as_of: date,
    *,
    company_id: Optional[str] = None,
    concurrency: int = 8,
    cancel_event: Optional[threading.Event] = None,
) -> AlertRunResult:
    service = build_evaluation_service(sb, company_id=company_id)
    batch = await service.evaluate_batch_async(
        as_of,
        company_id=company_id,
        concurrency=concurrency,
        cancel_event=cancel_event,
    )
    if batch.cancelled:
        logger.warning(
            "alert_pass_partial as_of=%s skipped_employees=%d",
            as_of,
            len(batch.skipped_employee_ids),
        )

    owners = CompanyRepository(sb, default_currency=RulebookRegistry.default_currency()).owner_by_company()
    alerts = AlertService(
        ledger=AlertLedgerRepository(sb),
        sink=NotificationRepository(sb, owners),
    )
    return alerts.run_pass(
        batch.evaluations(),
        as_of,
        currency_by_company=service.currency_map(),
        default_currency=service.default_currency,
    )
