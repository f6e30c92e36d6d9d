"""
Error kinds raised inside the Auth Service.

Service operations convert these into failed `AuthResult`s, so callers of the
service only ever see them as `ErrorInfo.kind` strings.
"""
from typing import Any, Dict, List, Optional


class AuthServiceError(Exception):
    kind = "error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AuthServiceError):
    kind = "validation_error"

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message, {"errors": errors} if errors else None)
        self.errors = errors or []


class ConflictError(AuthServiceError):
    kind = "conflict"


class AuthError(AuthServiceError):
    kind = "auth_error"


class IntegrityFault(AuthError):
    """A live refresh token points at a user that no longer exists."""
    kind = "integrity_fault"


class TokenError(AuthServiceError):
    kind = "token_error"


class TokenMissing(TokenError):
    kind = "missing"


class TokenMalformed(TokenError):
    kind = "malformed"


class TokenExpired(TokenError):
    kind = "expired"


class TokenInvalid(TokenError):
    kind = "invalid-signature"
