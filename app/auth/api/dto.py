from pydantic import BaseModel, constr
from typing import Any, Optional


class UserRegisterDTO(BaseModel):
    """DTO for user registration"""

    name: str
    email: str
    password: constr(min_length=8, max_length=100)  # type: ignore


class LoginDTO(BaseModel):
    """DTO for user login"""

    email: str
    password: str


class RefreshTokenDTO(BaseModel):
    refresh_token: str


class TokenData(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 86400  # 24 Hr in seconds


class BaseResponse(BaseModel):
    status: bool
    message: str
    data: Optional[Any] = None


class AuthSuccessResponse(BaseResponse):
    data: TokenData
