import json
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from apps.api.app.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def log_audit_event(
    db: Session,
    action: str,
    user_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
):
    """Stage an audit row in ``db``; the caller owns the commit."""
    event = AuditLog(
        user_id=user_id,
        action=action,
        details=json.dumps(details, sort_keys=True) if details else None,
    )
    db.add(event)
    db.flush()
    logger.info("audit %s user=%s", action, user_id)
