"""
Account lifecycle actions that touch both the credential store and the
session ledger: email confirmation, administrative lock and unlock.
"""
from datetime import datetime
from typing import Callable

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from apps.api.app.core.config import settings
from apps.api.app.core.security import decode_token, encode_token
from apps.api.app.core.time import to_epoch, utc_now
from apps.api.app.models.user import User
from apps.api.app.services.audit import log_audit_event
from apps.api.app.services.credential_store import SqlCredentialStore
from apps.api.app.services.token_sessions import TokenSessionManager, ensure_signing_key

CONFIRMATION_TOKEN_TYPE = "confirmation"


def issue_confirmation_token(
    user: User,
    clock: Callable[[], datetime] = utc_now,
) -> str:
    # Bound to the current email so a token sent before an address change is useless.
    key = ensure_signing_key(settings.SECRET_KEY)
    now_ts = to_epoch(clock())
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "typ": CONFIRMATION_TOKEN_TYPE,
        "iat": now_ts,
        "exp": now_ts + settings.CONFIRMATION_TOKEN_TTL_HOURS * 3600,
    }
    return encode_token(claims, key, algorithm=settings.JWT_ALGORITHM)


def confirm_with_token(store: SqlCredentialStore, token: str) -> User:
    key = ensure_signing_key(settings.SECRET_KEY)
    claims = decode_token(token, key, algorithm=settings.JWT_ALGORITHM)
    if not claims or claims.get("typ") != CONFIRMATION_TOKEN_TYPE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired confirmation token",
        )
    user = store.find_by_id(claims.get("sub"))
    if user is None or user.email != claims.get("email"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired confirmation token",
        )
    return store.confirm(user)


def lock_account(
    db: Session,
    store: SqlCredentialStore,
    manager: TokenSessionManager,
    user: User,
) -> User:
    """Lock ``user`` out and kill every session it currently holds."""
    manager.revoke_all(user.id)
    store.lock(user)
    log_audit_event(
        db,
        action="auth.lock",
        user_id=user.id,
    )
    db.commit()
    return user


def unlock_account(
    db: Session,
    store: SqlCredentialStore,
    user: User,
) -> User:
    store.unlock(user)
    log_audit_event(
        db,
        action="auth.unlock",
        user_id=user.id,
    )
    db.commit()
    return user
