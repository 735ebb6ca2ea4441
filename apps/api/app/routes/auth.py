from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from apps.api.app.api.deps import (
    get_credential_store,
    get_current_session,
    get_current_user,
    get_token_manager,
)
from apps.api.app.db.session import get_db
from apps.api.app.models.user import User
from apps.api.app.schemas.user import (
    ConfirmationRequest,
    PasswordChange,
    TokenOut,
    UserCreate,
    UserOut,
)
from apps.api.app.services.accounts import confirm_with_token
from apps.api.app.services.audit import log_audit_event
from apps.api.app.services.credential_store import SqlCredentialStore, normalize_email
from apps.api.app.services.token_sessions import SessionToken, TokenSessionManager

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(token: SessionToken) -> TokenOut:
    return TokenOut(
        access_token=token.encoded,
        token_type="bearer",
        expires_at=token.expires_at,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: UserCreate,
    db: Session = Depends(get_db),
    store: SqlCredentialStore = Depends(get_credential_store),
):
    new_user = store.register(
        email=payload.email,
        password=payload.password,
        name=payload.name,
    )
    log_audit_event(
        db,
        action="auth.register.success",
        user_id=new_user.id,
        details={"email": new_user.email},
    )
    db.commit()

    return {"message": "User created successfully", "id": new_user.id}


@router.post("/login", response_model=TokenOut)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    store: SqlCredentialStore = Depends(get_credential_store),
    manager: TokenSessionManager = Depends(get_token_manager),
):
    try:
        user = store.authenticate(form_data.username, form_data.password)
    except HTTPException as exc:
        log_audit_event(
            db,
            action="auth.login.failed",
            details={
                "email": normalize_email(form_data.username),
                "status": exc.status_code,
            },
        )
        db.commit()
        raise

    token = manager.issue(user)
    log_audit_event(
        db,
        action="auth.login.success",
        user_id=user.id,
        details={"jti": token.jti},
    )
    db.commit()

    return _token_response(token)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/logout")
def logout(
    current: tuple[User, SessionToken] = Depends(get_current_session),
    db: Session = Depends(get_db),
    manager: TokenSessionManager = Depends(get_token_manager),
):
    current_user, token = current
    manager.revoke(current_user.id, token.jti, token.expires_at)

    log_audit_event(
        db,
        action="auth.logout.success",
        user_id=current_user.id,
        details={"jti": token.jti},
    )
    db.commit()
    return {"message": "Session revoked"}


@router.post("/revoke-all")
def revoke_all_sessions(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    manager: TokenSessionManager = Depends(get_token_manager),
):
    cutoff = manager.revoke_all(current_user.id)

    log_audit_event(
        db,
        action="auth.revoke_all.requested",
        user_id=current_user.id,
        details={"revoked_after": cutoff.isoformat()},
    )
    db.commit()
    return {"message": "All previous sessions revoked"}


@router.post("/password", response_model=TokenOut)
def change_password(
    payload: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    store: SqlCredentialStore = Depends(get_credential_store),
    manager: TokenSessionManager = Depends(get_token_manager),
):
    if not store.verify_password(current_user, payload.current_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    # Old sessions die before the new hash is committed, never after.
    manager.revoke_all(current_user.id)
    store.change_password(current_user, payload.new_password)
    token = manager.issue(current_user)

    log_audit_event(
        db,
        action="auth.password.changed",
        user_id=current_user.id,
        details={"jti": token.jti},
    )
    db.commit()

    return _token_response(token)


@router.post("/confirm")
def confirm_email(
    payload: ConfirmationRequest,
    db: Session = Depends(get_db),
    store: SqlCredentialStore = Depends(get_credential_store),
):
    user = confirm_with_token(store, payload.token)

    log_audit_event(
        db,
        action="auth.confirm.success",
        user_id=user.id,
        details={"email": user.email},
    )
    db.commit()
    return {"message": "Email confirmed"}
