from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from apps.api.app.models.revoked_token import RevokedToken
from apps.api.app.models.session_revocation import SessionRevocation


class RevocationLedger(Protocol):
    """Persistent set of tokens invalidated before their natural expiry.

    Entries are keyed by ``(user_id, jti)``. A second, coarser kind of entry
    is the per-user cutoff written by "revoke all sessions": any token for
    that user issued at or before the cutoff is treated as revoked.
    """

    def insert(self, user_id: str, jti: str, expires_at: datetime) -> bool: ...

    def exists(self, user_id: str, jti: str) -> bool: ...

    def delete_expired_before(self, now: datetime) -> int: ...

    def revoke_all_before(self, user_id: str, cutoff: datetime) -> datetime: ...

    def revoked_after(self, user_id: str) -> Optional[datetime]: ...

    def delete_cutoffs_before(self, cutoff: datetime) -> int: ...


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back naive; everything stored here is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlRevocationLedger:
    def __init__(self, db: Session):
        self.db = db

    def insert(self, user_id: str, jti: str, expires_at: datetime) -> bool:
        """Record a revocation. Returns False when it was already recorded."""
        if self.exists(user_id, jti):
            return False
        self.db.add(
            RevokedToken(
                user_id=user_id,
                jti=jti,
                expires_at=_as_utc(expires_at),
            )
        )
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent revoke of the same token.
            self.db.rollback()
            return False
        return True

    def exists(self, user_id: str, jti: str) -> bool:
        row = (
            self.db.execute(
                select(RevokedToken.jti).where(
                    RevokedToken.user_id == user_id,
                    RevokedToken.jti == jti,
                )
            )
            .scalar_one_or_none()
        )
        return row is not None

    def delete_expired_before(self, now: datetime) -> int:
        now = _as_utc(now)
        result = self.db.execute(
            delete(RevokedToken).where(RevokedToken.expires_at <= now)
        )
        self.db.commit()
        return int(result.rowcount or 0)

    def revoke_all_before(self, user_id: str, cutoff: datetime) -> datetime:
        """Move the user's cutoff forward to ``cutoff``; never moves it back."""
        cutoff = _as_utc(cutoff)
        try:
            return self._write_cutoff(user_id, cutoff)
        except IntegrityError:
            self.db.rollback()
            return self._write_cutoff(user_id, cutoff)

    def _write_cutoff(self, user_id: str, cutoff: datetime) -> datetime:
        row = (
            self.db.execute(
                select(SessionRevocation).where(SessionRevocation.user_id == user_id)
            )
            .scalar_one_or_none()
        )
        if row is None:
            self.db.add(
                SessionRevocation(
                    user_id=user_id,
                    revoked_after=cutoff,
                )
            )
        elif _as_utc(row.revoked_after) < cutoff:
            row.revoked_after = cutoff
        else:
            cutoff = _as_utc(row.revoked_after)
        self.db.commit()
        return cutoff

    def revoked_after(self, user_id: str) -> Optional[datetime]:
        value = (
            self.db.execute(
                select(SessionRevocation.revoked_after).where(
                    SessionRevocation.user_id == user_id
                )
            )
            .scalar_one_or_none()
        )
        if value is None:
            return None
        return _as_utc(value)

    def delete_cutoffs_before(self, cutoff: datetime) -> int:
        cutoff = _as_utc(cutoff)
        result = self.db.execute(
            delete(SessionRevocation).where(SessionRevocation.revoked_after < cutoff)
        )
        self.db.commit()
        return int(result.rowcount or 0)
