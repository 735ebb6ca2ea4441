"""
Stateless session tokens with server-side revocation.

A token is a compact HS256 JWT carrying ``sub``, ``jti``, ``iat`` and
``exp``. Validation needs no database access except the revocation
lookup and the final subject lookup.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Union

from jose import JWTError
from sqlalchemy.orm import Session

from apps.api.app.core.config import settings
from apps.api.app.core.errors import (
    AuthError,
    ConfigurationError,
    InvalidSignature,
    MalformedToken,
    TokenExpired,
    TokenRevoked,
    UnknownSubject,
)
from apps.api.app.core.security import (
    ALGORITHM,
    REQUIRED_CLAIMS,
    encode_token,
    read_unverified_claims,
    verify_token_signature,
)
from apps.api.app.core.time import from_epoch, to_epoch, utc_now
from apps.api.app.models.user import User
from apps.api.app.services.credential_store import CredentialStore, SqlCredentialStore
from apps.api.app.services.revocation_ledger import RevocationLedger, SqlRevocationLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionToken:
    subject: str
    jti: str
    issued_at: datetime
    expires_at: datetime
    encoded: str

    @property
    def signature(self) -> str:
        return self.encoded.rsplit(".", 1)[-1]

    @classmethod
    def from_claims(cls, claims: dict, encoded: str) -> "SessionToken":
        missing = [name for name in REQUIRED_CLAIMS if claims.get(name) in (None, "")]
        if missing:
            raise MalformedToken(f"missing claims: {', '.join(missing)}")
        subject = claims["sub"]
        jti = claims["jti"]
        if not isinstance(subject, str) or not isinstance(jti, str):
            raise MalformedToken("sub and jti must be strings")
        try:
            issued_at = from_epoch(_as_int(claims["iat"]))
            expires_at = from_epoch(_as_int(claims["exp"]))
        except (TypeError, ValueError, OverflowError, OSError):
            raise MalformedToken("iat and exp must be integer timestamps")
        return cls(
            subject=subject,
            jti=jti,
            issued_at=issued_at,
            expires_at=expires_at,
            encoded=encoded,
        )


def _as_int(value) -> int:
    if isinstance(value, bool):
        raise TypeError("boolean timestamp")
    return int(value)


def ensure_signing_key(secret_key: Optional[str]) -> str:
    if not secret_key or not secret_key.strip():
        raise ConfigurationError("SECRET_KEY is not configured; refusing to sign or verify tokens")
    return secret_key


class TokenSessionManager:
    def __init__(
        self,
        secret_key: Optional[str],
        ledger: RevocationLedger,
        credentials: CredentialStore,
        lifetime: timedelta = timedelta(minutes=60),
        algorithm: str = ALGORITHM,
        clock: Callable[[], datetime] = utc_now,
        prune_on_revoke: bool = False,
    ):
        self._secret_key = secret_key
        self.ledger = ledger
        self.credentials = credentials
        self.lifetime = lifetime
        self.algorithm = algorithm
        self.clock = clock
        self.prune_on_revoke = prune_on_revoke

    def issue(self, user: User) -> SessionToken:
        key = ensure_signing_key(self._secret_key)
        now_ts = to_epoch(self.clock())
        # Tokens minted after a "revoke all" must land strictly past the cutoff.
        cutoff = self.ledger.revoked_after(user.id)
        if cutoff is not None:
            now_ts = max(now_ts, to_epoch(cutoff) + 1)
        exp_ts = now_ts + int(self.lifetime.total_seconds())
        claims = {
            "sub": str(user.id),
            "jti": uuid.uuid4().hex,
            "iat": now_ts,
            "exp": exp_ts,
        }
        encoded = encode_token(claims, key, algorithm=self.algorithm)
        return SessionToken.from_claims(claims, encoded)

    def validate(self, token: Union[str, SessionToken]) -> User:
        user, _ = self.validate_session(token)
        return user

    def validate_session(self, token: Union[str, SessionToken]) -> tuple[User, SessionToken]:
        """Run every check and return the user together with the parsed token.

        Raises a subclass of ``AuthError`` naming the first check that failed.
        """
        key = ensure_signing_key(self._secret_key)
        if isinstance(token, SessionToken):
            token = token.encoded
        try:
            return self._validate(token, key)
        except AuthError as exc:
            logger.info(
                "token rejected reason=%s sub=%s jti=%s",
                exc.reason,
                exc.subject,
                exc.jti,
            )
            raise

    def _validate(self, token: str, key: str) -> tuple[User, SessionToken]:
        if not token or not isinstance(token, str):
            raise MalformedToken("empty token")
        try:
            claims = read_unverified_claims(token)
        except JWTError as exc:
            raise MalformedToken(str(exc))
        session = SessionToken.from_claims(claims, token)

        try:
            verify_token_signature(token, key, algorithm=self.algorithm)
        except JWTError:
            raise InvalidSignature(subject=session.subject, jti=session.jti)

        if self.clock() > session.expires_at:
            raise TokenExpired(subject=session.subject, jti=session.jti)

        if self._is_revoked(session):
            raise TokenRevoked(subject=session.subject, jti=session.jti)

        user = self.credentials.find_by_id(session.subject)
        if user is None:
            raise UnknownSubject(subject=session.subject, jti=session.jti)
        return user, session

    def _is_revoked(self, session: SessionToken) -> bool:
        if self.ledger.exists(session.subject, session.jti):
            return True
        cutoff = self.ledger.revoked_after(session.subject)
        return cutoff is not None and to_epoch(session.issued_at) <= to_epoch(cutoff)

    def revoke(self, user_id: str, jti: str, expires_at: datetime) -> bool:
        """Invalidate one token. Re-revoking is a no-op and returns False."""
        if self.prune_on_revoke:
            self.prune()
        inserted = self.ledger.insert(user_id, jti, expires_at)
        if inserted:
            logger.info("token revoked sub=%s jti=%s", user_id, jti)
        return inserted

    def revoke_all(self, user_id: str) -> datetime:
        """Invalidate every token issued to ``user_id`` up to now."""
        cutoff = self.ledger.revoke_all_before(user_id, self.clock())
        logger.info("all sessions revoked sub=%s cutoff=%s", user_id, cutoff.isoformat())
        return cutoff

    def prune(self, now: Optional[datetime] = None) -> int:
        """Drop ledger rows that can no longer match a live token."""
        now = now or self.clock()
        removed = self.ledger.delete_expired_before(now)
        removed += self.ledger.delete_cutoffs_before(now - self.lifetime)
        if removed:
            logger.info("pruned %s revocation entries", removed)
        return removed


def build_token_manager(db: Session, clock: Callable[[], datetime] = utc_now) -> TokenSessionManager:
    return TokenSessionManager(
        secret_key=settings.SECRET_KEY,
        ledger=SqlRevocationLedger(db),
        credentials=SqlCredentialStore(db),
        lifetime=timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES),
        algorithm=settings.JWT_ALGORITHM,
        clock=clock,
        prune_on_revoke=settings.PRUNE_ON_REVOKE,
    )
