"""
Auth Router - registration, login, token refresh, logout and current-user lookup.

The refresh token travels in an HttpOnly, SameSite=strict cookie; the body
field `refreshToken` is accepted as a fallback for non-browser clients.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from ..dependencies import get_auth_service, get_current_claims
from ..schemas import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MeResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
)
from ..service import AuthResult, AuthService

router = APIRouter(prefix="/auth", tags=["auth"])

ERROR_STATUS = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "conflict": status.HTTP_409_CONFLICT,
    "auth_error": status.HTTP_401_UNAUTHORIZED,
    "integrity_fault": status.HTTP_401_UNAUTHORIZED,
}

ERROR_CODES = {
    "validation_error": "VALIDATION_ERROR",
    "conflict": "CONFLICT",
    "auth_error": "AUTH_ERROR",
    "integrity_fault": "AUTH_ERROR",
}

ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def _error_response(status_code: int, error: str, code: Optional[str] = None, details: Optional[dict] = None) -> JSONResponse:
    body = ErrorResponse(error=error, code=code, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True, exclude_none=True))


def _failure(result: AuthResult) -> JSONResponse:
    error = result.error
    return _error_response(
        ERROR_STATUS.get(error.kind, status.HTTP_400_BAD_REQUEST),
        error.message,
        code=ERROR_CODES.get(error.kind, "ERROR"),
        details=error.details,
    )


def _set_refresh_cookie(response: Response, svc: AuthService, token: str) -> None:
    response.set_cookie(
        key=svc.config.REFRESH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=svc.config.COOKIE_SECURE,
        samesite="strict",
        max_age=svc.config.refresh_cookie_max_age,
        path="/",
    )


def _clear_refresh_cookie(response: Response, svc: AuthService) -> None:
    response.delete_cookie(key=svc.config.REFRESH_COOKIE_NAME, path="/")


def _extract_refresh_token(request: Request, svc: AuthService, payload: Optional[RefreshRequest]) -> Optional[str]:
    token = request.cookies.get(svc.config.REFRESH_COOKIE_NAME)
    if not token and payload is not None:
        token = payload.refresh_token
    return token or None


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=RegisterResponse,
    responses=ERROR_RESPONSES,
)
def register(payload: RegisterRequest, response: Response, svc: AuthService = Depends(get_auth_service)):
    if payload.email and payload.password and payload.password != payload.confirm_password:
        return _error_response(status.HTTP_400_BAD_REQUEST, "Passwords do not match", code="VALIDATION_ERROR")

    result = svc.register(payload.email, payload.password, payload.first_name, payload.last_name)
    if not result.success:
        return _failure(result)

    _set_refresh_cookie(response, svc, result.data["refresh_token"])
    return RegisterResponse(user=result.data["user"])


@router.post("/login", response_model=LoginResponse, responses=ERROR_RESPONSES)
def login(payload: LoginRequest, response: Response, svc: AuthService = Depends(get_auth_service)):
    result = svc.login(payload.email, payload.password)
    if not result.success:
        return _failure(result)

    _set_refresh_cookie(response, svc, result.data["refresh_token"])
    return LoginResponse(access_token=result.data["access_token"])


@router.post("/refresh", response_model=RefreshResponse, responses=ERROR_RESPONSES)
def refresh(
    request: Request,
    payload: Optional[RefreshRequest] = Body(default=None),
    svc: AuthService = Depends(get_auth_service),
):
    token = _extract_refresh_token(request, svc, payload)
    if not token:
        return _error_response(status.HTTP_401_UNAUTHORIZED, "Refresh token not provided", code="AUTH_ERROR")

    result = svc.refresh_access_token(token)
    if not result.success:
        failed = _failure(result)
        _clear_refresh_cookie(failed, svc)
        return failed

    return RefreshResponse(access_token=result.data["access_token"])


@router.post("/logout", response_model=LogoutResponse)
def logout(
    request: Request,
    response: Response,
    payload: Optional[RefreshRequest] = Body(default=None),
    svc: AuthService = Depends(get_auth_service),
):
    svc.logout(_extract_refresh_token(request, svc, payload))
    _clear_refresh_cookie(response, svc)
    return LogoutResponse()


@router.get("/me", response_model=MeResponse, responses={401: {"model": ErrorResponse}})
def me(claims: Dict[str, Any] = Depends(get_current_claims), svc: AuthService = Depends(get_auth_service)):
    result = svc.get_user(claims["subject"])
    if not result.success:
        return _failure(result)
    return MeResponse(user=result.data["user"])
