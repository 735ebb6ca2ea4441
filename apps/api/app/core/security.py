from typing import Any, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from apps.api.app.core.config import settings


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = settings.JWT_ALGORITHM

REQUIRED_CLAIMS = ("sub", "jti", "iat", "exp")

# Expiry is checked against the session manager's clock, not jose's.
_SIGNATURE_ONLY = {
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
    "verify_aud": False,
}


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def encode_token(
    claims: dict[str, Any],
    secret_key: str,
    algorithm: str = ALGORITHM,
) -> str:
    return jwt.encode(
        claims,
        secret_key,
        algorithm=algorithm,
    )


def read_unverified_claims(token: str) -> dict[str, Any]:
    """Parse header and payload without checking the signature.

    Raises ``jose.JWTError`` when the token is not a well formed JWS.
    """
    jwt.get_unverified_header(token)
    return jwt.get_unverified_claims(token)


def verify_token_signature(
    token: str,
    secret_key: str,
    algorithm: str = ALGORITHM,
) -> dict[str, Any]:
    return jwt.decode(
        token,
        secret_key,
        algorithms=[algorithm],
        options=_SIGNATURE_ONLY,
    )


def decode_token(
    token: str,
    secret_key: str,
    algorithm: str = ALGORITHM,
) -> Optional[dict[str, Any]]:
    """Fully verify ``token``, expiry included. Returns None when it fails."""
    try:
        return jwt.decode(
            token,
            secret_key,
            algorithms=[algorithm],
        )
    except JWTError:
        return None
