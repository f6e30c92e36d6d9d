from passlib.context import CryptContext
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional
import secrets
import jwt

from .config import Settings
from .errors import TokenExpired, TokenInvalid, TokenMalformed
from .utils.clock import utcnow


class PasswordHasher:
    """
    Salted, deliberately slow password hashing.

    Uses pbkdf2_sha256 to avoid external bcrypt backend issues in some
    environments; the salt and round count are embedded in the stored hash.
    """

    def __init__(self, rounds: int):
        self._context = CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            pbkdf2_sha256__default_rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed_password: str) -> bool:
        try:
            return self._context.verify(password, hashed_password)
        except (ValueError, TypeError):
            # unrecognised or corrupted hash
            return False


@dataclass(frozen=True)
class AccessClaims:
    subject: str
    email: Optional[str]


class TokenIssuer:
    """
    Issues signed access tokens and opaque refresh tokens.

    The signing secret and lifetimes come from the Settings handed in at
    construction and do not change afterwards.
    """

    def __init__(self, config: Settings, clock: Callable[[], datetime] = utcnow):
        self._secret = config.JWT_SECRET
        self._algorithm = config.JWT_ALGORITHM
        self._access_ttl = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
        self._refresh_ttl = timedelta(days=config.REFRESH_TOKEN_EXPIRE_DAYS)
        self._refresh_bytes = config.REFRESH_TOKEN_BYTES
        self._clock = clock

    def issue_access(self, user) -> str:
        issued_at = self._clock()
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "iat": issued_at,
            "exp": issued_at + self._access_ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify_access(self, token: str) -> AccessClaims:
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired("Access token expired") from exc
        except jwt.InvalidSignatureError as exc:
            raise TokenInvalid("Access token signature is invalid") from exc
        except (jwt.DecodeError, jwt.MissingRequiredClaimError) as exc:
            raise TokenMalformed("Access token is malformed") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid("Access token is invalid") from exc

        return AccessClaims(subject=payload["sub"], email=payload.get("email"))

    def issue_refresh(self) -> str:
        return secrets.token_hex(self._refresh_bytes)

    def refresh_expiry(self, now: Optional[datetime] = None) -> datetime:
        return (now or self._clock()) + self._refresh_ttl
