"""
FastAPI application factory.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.database import init_db, close_db
from .core.errors import KioskError
from .core.redis import close_redis
from .api.router import router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Kiosk",
        description="Interactive kiosk content tree and live agenda",
        version="1.0.0",
        docs_url="/docs" if settings.env == "development" else None,
        redoc_url="/redoc" if settings.env == "development" else None,
    )

    # ── CORS ─────────────────────────────────────────────────────
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins if origins != ["*"] else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Errors ───────────────────────────────────────────────────
    @app.exception_handler(KioskError)
    async def kiosk_error_handler(request: Request, exc: KioskError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # ── Startup ──────────────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup():
        logging.basicConfig(
            level=getattr(logging, settings.log_level.upper(), logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        logger.info("Starting kiosk service (env=%s)", settings.env)

        # Create database tables
        await init_db()

        from .core.flags import get_flags
        flags = get_flags()
        logger.info(
            "Flags: s3=%s redis=%s force_agenda_auto_detect=%s",
            flags.use_s3, flags.use_redis, flags.force_agenda_auto_detect,
        )
        logger.info("Venue timezone: %s", settings.venue_timezone)

        logger.info("Kiosk service is ready")

    # ── Shutdown ─────────────────────────────────────────────────
    @app.on_event("shutdown")
    async def on_shutdown():
        await close_db()
        await close_redis()
        logger.info("Kiosk service shut down")

    # ── Routes ───────────────────────────────────────────────────
    app.include_router(router)

    return app
