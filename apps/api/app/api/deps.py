from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from apps.api.app.core.errors import AuthError
from apps.api.app.db.session import get_db
from apps.api.app.models.user import User
from apps.api.app.services.credential_store import SqlCredentialStore
from apps.api.app.services.token_sessions import (
    SessionToken,
    TokenSessionManager,
    build_token_manager,
)


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

# Every AuthError kind renders as this one response.
UNAUTHORIZED_DETAIL = "Invalid authentication credentials"


def get_token_manager(db: Session = Depends(get_db)) -> TokenSessionManager:
    return build_token_manager(db)


def get_credential_store(db: Session = Depends(get_db)) -> SqlCredentialStore:
    return SqlCredentialStore(db)


def get_current_session(
    token: str = Depends(oauth2_scheme),
    manager: TokenSessionManager = Depends(get_token_manager),
) -> tuple[User, SessionToken]:
    """
    Validates the bearer token and returns the user with the parsed token.
    """
    try:
        return manager.validate_session(token)
    except AuthError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHORIZED_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_current_user(
    current: tuple[User, SessionToken] = Depends(get_current_session),
) -> User:
    return current[0]
