"""Password hashing and signed session tokens."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from jose import jwt
from jose.exceptions import JOSEError
from passlib.context import CryptContext

from .errors import ExpiredToken, InvalidToken

logger = logging.getLogger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Verified against when the login handle is unknown, so both failure paths pay for bcrypt.
_DUMMY_HASH = _pwd_context.hash("taskify-dummy-password")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _is_timestamp(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ---------- Password hashing ----------
def hash_password(plain: str) -> str:
    """Hash a plaintext password using bcrypt."""
    return _pwd_context.hash(plain)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    """Verify a plaintext password against its bcrypt hash.

    With no stored hash a dummy comparison still runs and the result is False.
    """
    if not hashed:
        _pwd_context.verify(plain, _DUMMY_HASH)
        return False
    return _pwd_context.verify(plain, hashed)


# ---------- JWT ----------
class TokenService:
    """Issues and verifies HMAC-signed JWTs carrying ``sub``, ``iat`` and ``exp``.

    Expiry is checked here rather than by the JWT library so that a token is
    rejected exactly at its ``exp`` instant.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expires_minutes: int = 60,
        clock: Clock = utcnow,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._lifetime = timedelta(minutes=expires_minutes)
        self._clock = clock

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    def issue(self, identity: str) -> str:
        """Create a signed token for ``identity``."""
        issued_at = int(self._clock().timestamp())
        claims: Dict[str, Any] = {
            "sub": identity,
            "iat": issued_at,
            "exp": issued_at + int(self._lifetime.total_seconds()),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: Optional[str]) -> str:
        """Return the subject of a valid token or raise InvalidToken / ExpiredToken."""
        if not token:
            raise InvalidToken()
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_aud": False},
            )
        except JOSEError as exc:
            logger.debug("Rejected token: %s", exc)
            raise InvalidToken() from exc

        subject = claims.get("sub")
        issued_at = claims.get("iat")
        expires_at = claims.get("exp")
        if not isinstance(subject, str) or not subject:
            raise InvalidToken()
        if not _is_timestamp(issued_at) or not _is_timestamp(expires_at):
            raise InvalidToken()
        if self._clock().timestamp() >= expires_at:
            raise ExpiredToken()
        return subject
