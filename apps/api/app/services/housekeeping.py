import asyncio
import logging

from apps.api.app.db.session import SessionLocal
from apps.api.app.services.token_sessions import build_token_manager

logger = logging.getLogger(__name__)


def prune_revocations() -> int:
    db = SessionLocal()
    try:
        return build_token_manager(db).prune()
    finally:
        db.close()


async def revocation_prune_loop(interval_seconds: int) -> None:
    """Periodically drop revocation entries whose tokens have expired anyway."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = await asyncio.to_thread(prune_revocations)
            if removed > 0:
                logger.info("Revocation ledger cleanup removed %s entries", removed)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Error pruning revocation ledger")
