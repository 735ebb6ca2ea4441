class ConfigurationError(RuntimeError):
    """Raised when the service cannot run with the current settings."""


class AuthError(Exception):
    """Base class for request-time authentication failures.

    The concrete subclass (and its ``reason``) is for internal diagnostics
    only. Callers facing an external client must render every subclass the
    same way.
    """

    reason = "unauthorized"

    def __init__(self, message: str = "", *, subject=None, jti=None):
        super().__init__(message or self.reason)
        self.subject = subject
        self.jti = jti


class MalformedToken(AuthError):
    reason = "malformed"


class InvalidSignature(AuthError):
    reason = "invalid_signature"


class TokenExpired(AuthError):
    reason = "expired"


class TokenRevoked(AuthError):
    reason = "revoked"


class UnknownSubject(AuthError):
    reason = "unknown_subject"
