from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from typing import Any, Dict, Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class RegisterRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = Field(default=None, alias="confirmPassword")
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")


class UserOut(CamelModel):
    id: str
    email: str
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class RegisterResponse(CamelModel):
    success: bool = True
    message: str = "User registered successfully"
    user: UserOut


class LoginResponse(CamelModel):
    success: bool = True
    message: str = "Login successful"
    access_token: str = Field(alias="accessToken")


class RefreshResponse(CamelModel):
    success: bool = True
    message: str = "Token refreshed successfully"
    access_token: str = Field(alias="accessToken")


class LogoutResponse(CamelModel):
    success: bool = True
    message: str = "Logged out successfully"


class MeResponse(CamelModel):
    success: bool = True
    user: UserOut


class ErrorResponse(CamelModel):
    success: bool = False
    error: str
    code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
