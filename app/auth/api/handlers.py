from typing import Any
from fastapi import HTTPException

from app.auth.api.dto import LoginDTO, UserRegisterDTO
from app.auth.service.auth_service import AuthService
import logging


def _token_response(message: str, tokens: dict[str, str]) -> dict[str, Any]:
    return {
        "status": True,
        "message": message,
        "data": {
            "access_token": tokens["access_token"],
            "refresh_token": tokens["refresh_token"],
            "token_type": "bearer",
            "expires_in": 86400  # 24 Hr in seconds
        }
    }


class AuthHandler:
    def __init__(self, auth_service: AuthService, logger: logging.Logger):
        self.auth_service = auth_service
        self.logger = logger

    async def register_user(self, user_data: UserRegisterDTO) -> dict[str, Any]:
        try:
            tokens = await self.auth_service.register_with_email(
                user_data.email,
                user_data.password,
                user_data.name,
            )
            return _token_response("Registration successful", tokens)
        except HTTPException:
            raise
        except Exception as e:
            self.logger.error(f"Error during registration: {e!s}")
            raise HTTPException(status_code=500, detail="Registration failed")

    async def login(self, login_data: LoginDTO) -> dict[str, Any]:
        try:
            tokens = await self.auth_service.login_with_email(login_data.email, login_data.password)
            return _token_response("Login successful", tokens)
        except HTTPException:
            raise
        except Exception as e:
            self.logger.error(f"Error during login: {e!s}")
            raise HTTPException(status_code=500, detail="Login failed")

    async def refresh_token(self, refresh_token: str) -> dict[str, Any]:
        try:
            tokens = await self.auth_service.refresh_token(refresh_token)
            return _token_response("Token refreshed successfully", tokens)
        except HTTPException:
            raise
        except Exception as e:
            self.logger.error(f"Error refreshing token: {e!s}")
            raise HTTPException(status_code=500, detail="Token refresh failed")
