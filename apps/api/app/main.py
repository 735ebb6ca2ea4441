import asyncio
import logging
from contextlib import asynccontextmanager

import apps.api.app.models.user
import apps.api.app.models.audit_log
import apps.api.app.models.revoked_token
import apps.api.app.models.session_revocation

from fastapi import FastAPI

from apps.api.app.core.config import settings
from apps.api.app.db.session import engine, Base
from apps.api.app.api.ops import router as ops_router
from apps.api.app.routes.auth import router as auth_router
from apps.api.app.services.housekeeping import revocation_prune_loop
from apps.api.app.services.token_sessions import ensure_signing_key

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A missing signing key aborts startup.
    ensure_signing_key(settings.SECRET_KEY)
    Base.metadata.create_all(bind=engine)

    prune_task = None
    if settings.REVOCATION_PRUNE_INTERVAL_SECONDS > 0:
        prune_task = asyncio.create_task(
            revocation_prune_loop(settings.REVOCATION_PRUNE_INTERVAL_SECONDS)
        )
        logger.info(
            "Revocation prune loop started (interval: %ss)",
            settings.REVOCATION_PRUNE_INTERVAL_SECONDS,
        )

    yield

    if prune_task is not None:
        prune_task.cancel()
        try:
            await prune_task
        except asyncio.CancelledError:
            pass


app = FastAPI(title="token-sessions API", lifespan=lifespan)

app.include_router(auth_router)
app.include_router(ops_router)


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/")
def root():
    return {"app": "token-sessions", "docs": "/docs"}
