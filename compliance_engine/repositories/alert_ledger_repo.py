# compliance_engine/repositories/alert_ledger_repo.py

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from compliance_engine.repositories.base import BaseRepository, json_safe
from compliance_engine.services.compliance.notification_scheduler import (
    LedgerKey,
    TierLedgerSnapshot,
)


class AlertLedgerRepository(BaseRepository):
    """
    Append-only ledger of raised alert tiers.
    1 row = 1 (document_id, tier, bucket); the table carries a UNIQUE
    constraint on those columns, which is what makes try_record atomic.
    """

    TABLE = "compliance_alert_ledger"
    CONFLICT = "document_id,tier,bucket"

    def __init__(self, sb):
        super().__init__(sb)

    def try_record(self, key: LedgerKey) -> bool:
        payload = json_safe({
            "document_id": key.document_id,
            "tier": key.tier,
            "bucket": key.bucket,
        })
        res = (
            self.sb
            .table(self.TABLE)
            .upsert(payload, on_conflict=self.CONFLICT, ignore_duplicates=True)
            .execute()
        )
        # ignore-duplicates returns only the rows this call inserted
        return bool(res.data)

    def snapshot(self, document_ids: Optional[Iterable[str]] = None) -> TierLedgerSnapshot:
        q = self.sb.table(self.TABLE).select("document_id,tier,bucket")
        if document_ids is not None:
            ids = list(document_ids)
            if not ids:
                return TierLedgerSnapshot()
            q = q.in_("document_id", ids)
        res = q.execute()
        return TierLedgerSnapshot(self._to_key(r) for r in (res.data or []))

    def _to_key(self, row: dict) -> LedgerKey:
        bucket = row["bucket"]
        if isinstance(bucket, str):
            bucket = date.fromisoformat(bucket[:10])
        return LedgerKey(str(row["document_id"]), str(row["tier"]), bucket)
