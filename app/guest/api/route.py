from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.errors import WingmanError
from app.guest.api.dependencies import GuestManagerDep, GuestTokenDep, set_guest_cookie

guest_router = APIRouter(prefix="/guest", tags=["Guest"])


@guest_router.post("")
async def create_guest_session(guest_manager: GuestManagerDep):
    """Start a guest session and set the guest cookie."""
    _, token = guest_manager.issue()
    response = JSONResponse(
        content={
            "status": True,
            "message": "Guest session created",
            "data": {"messagesRemaining": guest_manager.max_messages},
        }
    )
    set_guest_cookie(response, token)
    return response


@guest_router.get("/check-token")
async def check_token(guest_manager: GuestManagerDep, guest_token: GuestTokenDep):
    """Report whether the caller holds a usable guest cookie."""
    if not guest_token:
        return {"hasToken": False, "messagesRemaining": None}
    try:
        session = guest_manager.decode(guest_token)
    except WingmanError:
        return {"hasToken": False, "messagesRemaining": None}
    return {"hasToken": True, "messagesRemaining": guest_manager.remaining(session)}
