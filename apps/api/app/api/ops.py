import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from apps.api.app.api.deps import get_credential_store, get_token_manager
from apps.api.app.core.config import settings
from apps.api.app.db.session import get_db
from apps.api.app.models.user import User
from apps.api.app.schemas.user import UserOut
from apps.api.app.services.accounts import (
    issue_confirmation_token,
    lock_account,
    unlock_account,
)
from apps.api.app.services.credential_store import SqlCredentialStore
from apps.api.app.services.token_sessions import TokenSessionManager


def verify_admin_key(
    authorization: Optional[str] = Header(default=None),
) -> None:
    """
    Operator endpoints take ADMIN_API_KEY as a Bearer token.
    They are closed when no key is configured.
    """
    expected_key = settings.ADMIN_API_KEY
    if not expected_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin API not configured",
        )
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Missing admin credentials",
        )
    if not secrets.compare_digest(authorization[7:].encode(), expected_key.encode()):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin credentials",
        )


router = APIRouter(prefix="/ops", tags=["ops"], dependencies=[Depends(verify_admin_key)])


def _get_user_or_404(store: SqlCredentialStore, user_id: str) -> User:
    user = store.find_by_id(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


@router.post("/users/{user_id}/confirmation-token")
def create_confirmation_token(
    user_id: str,
    store: SqlCredentialStore = Depends(get_credential_store),
):
    # Delivery to the user's inbox happens outside this service.
    user = _get_user_or_404(store, user_id)
    if user.confirmed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already confirmed",
        )
    return {"confirmation_token": issue_confirmation_token(user)}


@router.post("/users/{user_id}/lock", response_model=UserOut)
def lock_user(
    user_id: str,
    db: Session = Depends(get_db),
    store: SqlCredentialStore = Depends(get_credential_store),
    manager: TokenSessionManager = Depends(get_token_manager),
):
    return lock_account(db, store, manager, _get_user_or_404(store, user_id))


@router.post("/users/{user_id}/unlock", response_model=UserOut)
def unlock_user(
    user_id: str,
    db: Session = Depends(get_db),
    store: SqlCredentialStore = Depends(get_credential_store),
):
    return unlock_account(db, store, _get_user_or_404(store, user_id))
