from typing import Annotated, Optional
from fastapi import Depends, Request, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.auth.api.handlers import AuthHandler
from app.auth.service.auth_service import AuthService


# auto_error is off so /chat can fall back to the guest cookie
security = HTTPBearer(auto_error=False)

BearerDep = Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)]


def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Auth service not initialized")
    return service


def get_auth_handler(request: Request) -> AuthHandler:
    """Auth handler, created once per app on first use."""
    handler = getattr(request.app.state, "auth_handler", None)
    if handler is None:
        handler = AuthHandler(get_auth_service(request), request.app.state.logger)
        request.app.state.auth_handler = handler
    return handler


async def get_current_user(request: Request, credentials: BearerDep) -> dict:
    """
    Claims of the signed-in user. 401 when the bearer token is missing or invalid.

    Usage:
        @router.get("/protected")
        async def protected_route(current_user: CurrentUserDep):
            user_id = current_user["user_id"]
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return await get_auth_service(request).verify_token(credentials.credentials)
    except HTTPException as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail, headers={"WWW-Authenticate": "Bearer"})


async def get_optional_current_user(request: Request, credentials: BearerDep) -> Optional[dict]:
    """Claims of the signed-in user, or None for anonymous callers and bad tokens."""
    if not credentials:
        return None
    try:
        return await get_auth_service(request).verify_token(credentials.credentials)
    except HTTPException:
        return None


# Type aliases for cleaner dependency injection
AuthHandlerDep = Annotated[AuthHandler, Depends(get_auth_handler)]
CurrentUserDep = Annotated[dict, Depends(get_current_user)]
OptionalCurrentUserDep = Annotated[Optional[dict], Depends(get_optional_current_user)]
