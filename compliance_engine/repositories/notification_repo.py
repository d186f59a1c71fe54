# compliance_engine/repositories/notification_repo.py

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from compliance_engine.repositories.base import BaseRepository
from compliance_engine.services.compliance.notification_scheduler import AlertTier

logger = logging.getLogger(__name__)


class NotificationRepository(BaseRepository):
    """In-app notifications (one row per alert, addressed to the company owner)."""

    TABLE = "notifications"
    TYPE = "document_expiry"

    def __init__(self, sb, owner_by_company: Dict[str, str]):
        super().__init__(sb)
        self.owner_by_company = owner_by_company

    def deliver(self, alerts: Sequence[AlertTier]) -> None:
        rows: List[dict] = []
        for a in alerts:
            user_id = self.owner_by_company.get(a.company_id or "")
            if not user_id:
                logger.warning(
                    "notification_skipped reason=no_owner company_id=%s document_id=%s tier=%s",
                    a.company_id,
                    a.document_id,
                    a.tier,
                )
                continue
            rows.append({
                "user_id": user_id,
                "title": a.title[:200],
                "message": a.message,
                "type": self.TYPE,
                "entity_type": "document",
                "entity_id": a.document_id,
            })

        if not rows:
            return
        self.sb.table(self.TABLE).insert(self._encode(rows)).execute()
