from typing import Optional, Protocol

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from apps.api.app.core.config import settings
from apps.api.app.core.security import get_password_hash, verify_password
from apps.api.app.core.time import utc_now
from apps.api.app.models.user import User


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class CredentialStore(Protocol):
    def find_by_id(self, user_id: str) -> Optional[User]: ...

    def find_by_email(self, email: str) -> Optional[User]: ...

    def verify_password(self, user: User, plaintext: str) -> bool: ...


class SqlCredentialStore:
    """Owns user identity, password hashes and the confirmed/locked flags."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        return (
            self.db.execute(select(User).where(User.id == user_id))
            .scalar_one_or_none()
        )

    def find_by_email(self, email: str) -> Optional[User]:
        normalized = normalize_email(email)
        if not normalized:
            return None
        return (
            self.db.execute(select(User).where(User.email == normalized))
            .scalar_one_or_none()
        )

    def verify_password(self, user: User, plaintext: str) -> bool:
        if not plaintext or not user.hashed_password:
            return False
        return verify_password(plaintext, user.hashed_password)

    def authenticate(self, email: str, password: str) -> User:
        user = self.find_by_email(email)
        if not user or not self.verify_password(user, password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
            )
        if user.locked:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is locked",
            )
        if settings.REQUIRE_CONFIRMED_EMAIL and not user.confirmed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Email address not confirmed",
            )
        return user

    def register(self, email: str, password: str, name: str) -> User:
        if self.find_by_email(email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered",
            )
        try:
            user = User(
                email=normalize_email(email),
                hashed_password=get_password_hash(password),
                name=name,
                locked=False,
            )
        except ValueError as exc:
            raise HTTPException(
                status_code=422,
                detail=str(exc),
            )
        self.db.add(user)
        self.db.flush()
        return user

    def change_password(self, user: User, new_password: str) -> User:
        user.hashed_password = get_password_hash(new_password)
        user.password_changed_at = utc_now()
        self.db.flush()
        return user

    def confirm(self, user: User) -> User:
        if user.confirmed_at is None:
            user.confirmed_at = utc_now()
            self.db.flush()
        return user

    def lock(self, user: User) -> User:
        user.locked = True
        self.db.flush()
        return user

    def unlock(self, user: User) -> User:
        user.locked = False
        self.db.flush()
        return user
