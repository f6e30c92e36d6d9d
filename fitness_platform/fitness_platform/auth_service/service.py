"""
Credential and token lifecycle service.

Every public operation returns an `AuthResult`. Domain failures (bad input,
conflicts, bad credentials, bad tokens) come back as a failed result; only
unexpected store or connection errors are raised to the caller.
"""
from dataclasses import dataclass, field
from datetime import datetime
from functools import wraps
from typing import Any, Callable, Dict, Optional, Tuple
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from .auth import PasswordHasher, TokenIssuer
from .config import Settings
from .db import session_scope
from .errors import (
    AuthError,
    AuthServiceError,
    ConflictError,
    IntegrityFault,
    TokenMissing,
    ValidationError,
)
from .models import User
from .repositories import RefreshTokenRepository, UserRepository
from .schemas import UserOut
from .utils.clock import utcnow
from .utils.validators import normalize_email, validate_email, validate_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
EXPIRED_REFRESH_TOKEN = "Refresh token expired"


@dataclass
class ErrorInfo:
    kind: str
    message: str
    details: Optional[Dict[str, Any]] = None


@dataclass
class AuthResult:
    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[ErrorInfo] = None

    @classmethod
    def ok(cls, **data: Any) -> "AuthResult":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, exc: AuthServiceError) -> "AuthResult":
        return cls(success=False, error=ErrorInfo(kind=exc.kind, message=exc.message, details=exc.details))


def _as_result(method: Callable[..., AuthResult]) -> Callable[..., AuthResult]:
    @wraps(method)
    def wrapper(*args, **kwargs) -> AuthResult:
        try:
            return method(*args, **kwargs)
        except AuthServiceError as exc:
            return AuthResult.failure(exc)

    return wrapper


class AuthService:
    def __init__(
        self,
        *,
        config: Settings,
        session_factory: sessionmaker,
        hasher: Optional[PasswordHasher] = None,
        token_issuer: Optional[TokenIssuer] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config
        self.session_factory = session_factory
        self.hasher = hasher or PasswordHasher(rounds=config.PASSWORD_HASH_ROUNDS)
        self.token_issuer = token_issuer or TokenIssuer(config, clock=clock)
        self.clock = clock
        # verified against when the email is unknown so both login failures cost the same
        self._dummy_hash = self.hasher.hash("dummy-password-for-timing")

    # --------- Core operations ----------
    @_as_result
    def register(
        self,
        email: Optional[str],
        password: Optional[str],
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> AuthResult:
        if not email or not password:
            raise ValidationError(
                "Email and password are required",
                [msg for msg, missing in (("Email is required", not email), ("Password is required", not password)) if missing],
            )

        email = normalize_email(email)
        if not validate_email(email):
            raise ValidationError("Invalid email format")

        violations = validate_password(password)
        if violations:
            raise ValidationError(". ".join(violations), violations)

        with session_scope(self.session_factory) as db:
            users = UserRepository(db)
            if users.get_by_email(email) is not None:
                raise ConflictError("User already exists with this email")

            try:
                user = users.add(
                    email=email,
                    password_hash=self.hasher.hash(password),
                    first_name=_clean_name(first_name),
                    last_name=_clean_name(last_name),
                )
            except IntegrityError as exc:
                # a concurrent registration won the race for this email
                raise ConflictError("User already exists with this email") from exc

            access_token, refresh_token = self._start_session(db, user)
            user_out = UserOut.model_validate(user)

        logger.info("User registered user_id=%s", user_out.id)
        return AuthResult.ok(user=user_out, access_token=access_token, refresh_token=refresh_token)

    @_as_result
    def login(self, email: Optional[str], password: Optional[str]) -> AuthResult:
        if not email or not password:
            raise ValidationError("Email and password are required")

        email = normalize_email(email)
        with session_scope(self.session_factory) as db:
            user = UserRepository(db).get_by_email(email)
            if user is None:
                self.hasher.verify(password, self._dummy_hash)
                logger.warning("Login failed: unknown account")
                raise AuthError(INVALID_CREDENTIALS)
            if not self.hasher.verify(password, user.password_hash):
                logger.warning("Login failed: bad password user_id=%s", user.id)
                raise AuthError(INVALID_CREDENTIALS)

            access_token, refresh_token = self._start_session(db, user)
            user_id = user.id

        logger.info("Login successful user_id=%s", user_id)
        return AuthResult.ok(access_token=access_token, refresh_token=refresh_token)

    @_as_result
    def refresh_access_token(self, refresh_token: Optional[str]) -> AuthResult:
        if not refresh_token:
            raise ValidationError("Refresh token is required")

        access_token = None
        with session_scope(self.session_factory) as db:
            tokens = RefreshTokenRepository(db)
            row = tokens.find_active(refresh_token)
            if row is None:
                logger.warning("Refresh rejected: unknown or revoked token")
                raise AuthError(INVALID_REFRESH_TOKEN)

            if not row.is_usable(self.clock()):
                # the revocation must be committed before the failure is reported
                tokens.revoke(row)
                logger.warning("Refresh rejected: expired token user_id=%s", row.user_id)
            else:
                user = UserRepository(db).get_by_id(row.user_id)
                if user is None:
                    logger.error("Refresh token %s references missing user_id=%s", row.id, row.user_id)
                    raise IntegrityFault(INVALID_REFRESH_TOKEN)
                access_token = self.token_issuer.issue_access(user)

        if access_token is None:
            raise AuthError(EXPIRED_REFRESH_TOKEN)
        return AuthResult.ok(access_token=access_token)

    @_as_result
    def logout(self, refresh_token: Optional[str]) -> AuthResult:
        if not refresh_token:
            return AuthResult.ok(revoked=0)

        with session_scope(self.session_factory) as db:
            revoked = RefreshTokenRepository(db).revoke_by_value(refresh_token)

        logger.info("Logout revoked %d refresh token(s)", revoked)
        return AuthResult.ok(revoked=revoked)

    @_as_result
    def verify_access_token(self, token: Optional[str]) -> AuthResult:
        if not token or not token.strip():
            raise TokenMissing("Access token required")

        claims = self.token_issuer.verify_access(token.strip())
        return AuthResult.ok(subject=claims.subject, email=claims.email)

    @_as_result
    def get_user(self, user_id: str) -> AuthResult:
        with session_scope(self.session_factory) as db:
            user = UserRepository(db).get_by_id(user_id)
            if user is None:
                raise AuthError("User not found")
            user_out = UserOut.model_validate(user)
        return AuthResult.ok(user=user_out)

    def cleanup_expired_tokens(self) -> int:
        """
        Revoke every live refresh token whose expiry has passed.

        Safe to run repeatedly and alongside live traffic; returns the number
        of tokens revoked by this run.
        """
        with session_scope(self.session_factory) as db:
            revoked = RefreshTokenRepository(db).revoke_expired(self.clock())
        logger.info("Cleaned up expired refresh tokens: %d", revoked)
        return revoked

    # --------- Helpers ----------
    def _start_session(self, db: Session, user: User) -> Tuple[str, str]:
        access_token = self.token_issuer.issue_access(user)
        refresh_token = self.token_issuer.issue_refresh()
        RefreshTokenRepository(db).add(
            user_id=user.id,
            token=refresh_token,
            expires_at=self.token_issuer.refresh_expiry(self.clock()),
        )
        return access_token, refresh_token


def _clean_name(name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    return name.strip() or None
