from fastapi import APIRouter

from app.auth.api.dto import (
    LoginDTO,
    RefreshTokenDTO,
    UserRegisterDTO,
    AuthSuccessResponse,
)
from app.auth.api.dependencies import AuthHandlerDep


auth_router = APIRouter(prefix="/auth", tags=["Authentication"])


@auth_router.post("/register", response_model=AuthSuccessResponse)
async def register(user_data: UserRegisterDTO, auth_handler: AuthHandlerDep):
    """Register a new user with email and password"""
    return await auth_handler.register_user(user_data)


@auth_router.post("/login", response_model=AuthSuccessResponse)
async def login(login_data: LoginDTO, auth_handler: AuthHandlerDep):
    """Login with email and password"""
    return await auth_handler.login(login_data)


@auth_router.post("/refresh", response_model=AuthSuccessResponse)
async def refresh(body: RefreshTokenDTO, auth_handler: AuthHandlerDep):
    """Exchange a refresh token for a new token pair"""
    return await auth_handler.refresh_token(body.refresh_token)
