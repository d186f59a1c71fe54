import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from compliance_engine.core.config import settings
from compliance_engine.schemas.compliance_view_model import AlertRunOut
from compliance_engine.services.compliance.alert_runner import run_alert_pass
from compliance_engine.services.result.compliance_view_mapper import map_alert_run

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/run", response_model=AlertRunOut)
async def run_alerts(request: Request, as_of: Optional[date] = None, company_id: Optional[str] = None):
    as_of = as_of or date.today()
    try:
        result = await run_alert_pass(
            request.state.sb,
            as_of,
            company_id=company_id,
            concurrency=settings.ALERT_BATCH_CONCURRENCY,
        )
    except Exception as e:
        logger.exception("alert_run_failed as_of=%s company_id=%s", as_of, company_id)
        raise HTTPException(status_code=500, detail=str(e))
    return map_alert_run(result)
