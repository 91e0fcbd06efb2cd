"""
mira.api.main — Dashboard API application
==========================================

::

    uvicorn mira.api.main:app --reload --port 8000

Every route lives under ``/api``.  CORS origins come from
``CORS_ALLOW_ORIGINS`` (comma-separated) or, failing that, ``FRONTEND_URL``.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from mira.api.auth import router as auth_router  # noqa: E402
from mira.api.deps import get_engine  # noqa: E402
from mira.api.rate_limit import configure_rate_limiter  # noqa: E402
from mira.api.routes.command_lists import router as command_lists_router  # noqa: E402
from mira.api.routes.guilds import router as guilds_router  # noqa: E402
from mira.api.routes.reports import router as reports_router  # noqa: E402
from mira.api.routes.speak import router as speak_router  # noqa: E402
from mira.services.setup_service import get_bot_heartbeat  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    explicit = [o.strip().rstrip("/") for o in os.getenv("CORS_ALLOW_ORIGINS", "").split(",")]
    explicit = [o for o in explicit if o]
    if explicit:
        return explicit
    frontend = os.getenv("FRONTEND_URL", "").strip().rstrip("/")
    return [frontend] if frontend else []


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = get_engine()
    configure_rate_limiter(engine=engine)
    logger.info("Mira API up (database %s)", engine.url.database)
    yield
    logger.info("Mira API stopped")


app = FastAPI(title="Mira Dashboard API", version="1.0.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (
    auth_router,
    command_lists_router,
    guilds_router,
    speak_router,
    reports_router,
):
    app.include_router(router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.get("/api/health/bot")
def bot_health():
    """``online`` while the bot's heartbeat is fresh, else ``offline``."""
    return get_bot_heartbeat(get_engine())
