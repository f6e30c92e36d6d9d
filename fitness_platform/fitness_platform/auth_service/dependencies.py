from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, status

from .config import settings
from .db import SessionLocal
from .service import AuthService

TOKEN_ERROR_CODES = {
    "missing": "TOKEN_MISSING",
    "malformed": "TOKEN_MALFORMED",
    "expired": "TOKEN_EXPIRED",
    "invalid-signature": "TOKEN_INVALID",
}


@lru_cache
def get_auth_service() -> AuthService:
    """Process-wide service wired from the startup settings."""
    return AuthService(config=settings, session_factory=SessionLocal)


def get_bearer_token(authorization: Optional[str] = Header(default=None, alias="Authorization")) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def get_current_claims(
    token: Optional[str] = Depends(get_bearer_token),
    svc: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """Strict auth dependency; raises 401 when the token is missing or unusable."""
    result = svc.verify_access_token(token)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "success": False,
                "error": result.error.message,
                "code": TOKEN_ERROR_CODES.get(result.error.kind, "TOKEN_INVALID"),
            },
            headers={"WWW-Authenticate": "Bearer"},
        )
    return result.data


def get_optional_claims(
    token: Optional[str] = Depends(get_bearer_token),
    svc: AuthService = Depends(get_auth_service),
) -> Optional[Dict[str, Any]]:
    """Lenient auth dependency; returns the claims when valid, else None."""
    if not token:
        return None
    result = svc.verify_access_token(token)
    return result.data if result.success else None
