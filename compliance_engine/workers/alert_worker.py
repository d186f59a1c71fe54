import asyncio
import logging
from datetime import date

from compliance_engine.core.config import settings
from compliance_engine.core.logging import setup_logging
from compliance_engine.infra.supabase_client import get_supabase
from compliance_engine.services.compliance.alert_runner import run_alert_pass
from compliance_engine.services.policy.loader import load_rulebook_from_file
from compliance_engine.services.policy.registry import RulebookRegistry

logger = logging.getLogger("compliance.alert_worker")


async def loop():
    sb = get_supabase()

    while True:
        as_of = date.today()
        try:
            result = await run_alert_pass(
                sb,
                as_of,
                concurrency=settings.ALERT_BATCH_CONCURRENCY,
            )
            logger.info(
                "alert_worker_pass as_of=%s emitted=%d already_raised=%d",
                as_of,
                len(result.emitted),
                result.already_raised,
            )
        except Exception:
            logger.exception("alert_worker_pass_failed as_of=%s", as_of)
        finally:
            await asyncio.sleep(settings.ALERT_POLL_SECONDS)


def main():
    setup_logging()
    RulebookRegistry.load(load_rulebook_from_file(settings.RULEBOOK_PATH or None))
    asyncio.run(loop())


if __name__ == "__main__":
    main()
