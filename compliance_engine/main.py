import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from compliance_engine.core.config import settings
from compliance_engine.core.logging import setup_logging
from compliance_engine.core.middleware import RequestLoggingMiddleware

# Routers
from compliance_engine.routers.health import router as health_router
from compliance_engine.routers.rules import router as rules_router
from compliance_engine.routers.compliance import router as compliance_router
from compliance_engine.routers.alerts import router as alerts_router
from compliance_engine.routers.documents import router as documents_router

# Rulebook bootstrap
from compliance_engine.services.policy.loader import load_rulebook_from_file
from compliance_engine.services.policy.registry import RulebookRegistry

# Supabase (singleton)
from compliance_engine.infra.supabase_client import get_supabase

logger = logging.getLogger("compliance.boot")


def create_app() -> FastAPI:
    app = FastAPI(title="Document Compliance Engine")

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    @app.middleware("http")
    async def inject_request_context(request: Request, call_next):
        if not hasattr(request.app.state, "sb"):
            raise RuntimeError("Supabase client (app.state.sb) is not initialized")
        request.state.sb = request.app.state.sb
        return await call_next(request)

    # -------------------------------------------------
    # Startup
    # -------------------------------------------------
    @app.on_event("startup")
    def startup():
        setup_logging()

        # 1) Load rulebook
        if not RulebookRegistry.is_loaded():
            bundle = load_rulebook_from_file(settings.RULEBOOK_PATH or None)
            RulebookRegistry.load(bundle)
        meta = RulebookRegistry.get_bundle().meta
        logger.info("boot rulebook=%s version=%s", meta.rulebook_id, meta.version)

        # 2) Initialize Supabase singleton (fail fast); tests may inject their own
        if not hasattr(app.state, "sb"):
            app.state.sb = get_supabase()
        logger.info("boot supabase client ready")

    # -------------------------------------------------
    # Routers
    # -------------------------------------------------
    app.include_router(health_router, prefix="/api/v1/health", tags=["health"])
    app.include_router(rules_router, prefix="/api/v1/rules", tags=["rules"])
    app.include_router(compliance_router, prefix="/api/v1/compliance", tags=["compliance"])
    app.include_router(alerts_router, prefix="/api/v1/alerts", tags=["alerts"])
    app.include_router(documents_router, prefix="/api/v1", tags=["documents"])

    return app


app = create_app()
