"""
FastAPI application factory.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import get_settings
from .api.router import router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="SellSmart",
        description="AI resale listings from a single photo",
        version="1.0.0",
        docs_url="/docs" if settings.env == "development" else None,
        redoc_url="/redoc" if settings.env == "development" else None,
    )

    # ── CORS ─────────────────────────────────────────────────────
    # The page is served separately and talks to this API cross-origin.
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Startup ──────────────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup():
        logging.basicConfig(
            level=getattr(logging, settings.log_level.upper(), logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        logger.info("Starting SellSmart (env=%s)", settings.env)

        from .core.flags import get_flags
        flags = get_flags()
        logger.info(
            "Models: analysis=%s edit=%s pro=%s (mock_pro_generation=%s)",
            settings.analysis_model, settings.edit_model,
            settings.pro_image_model, flags.mock_pro_generation,
        )
        if not settings.gemini_api_key:
            logger.warning("GEMINI_API_KEY is not set; every Gemini call will fail")

        logger.info("SellSmart is ready")

    # ── Shutdown ─────────────────────────────────────────────────
    @app.on_event("shutdown")
    async def on_shutdown():
        from .services.session_store import clear_sessions
        clear_sessions()
        logger.info("SellSmart shut down")

    # ── Routes ───────────────────────────────────────────────────
    app.include_router(router)

    return app
