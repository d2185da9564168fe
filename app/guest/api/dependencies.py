from typing import Annotated

from fastapi import Depends, Request, HTTPException
from starlette.responses import Response

from app.core.config import settings
from app.guest.service.guest_service import GuestSessionManager


def get_guest_manager(request: Request) -> GuestSessionManager:
    """Get the guest session manager from app state."""
    manager = getattr(request.app.state, "guest_manager", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="Guest sessions not initialized")
    return manager


def get_guest_token(request: Request) -> str | None:
    return request.cookies.get(settings.GUEST_COOKIE_NAME)


def set_guest_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.GUEST_COOKIE_NAME,
        value=token,
        max_age=settings.GUEST_SESSION_DURATION_SECONDS,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


GuestManagerDep = Annotated[GuestSessionManager, Depends(get_guest_manager)]
GuestTokenDep = Annotated[str | None, Depends(get_guest_token)]
