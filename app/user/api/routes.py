from fastapi import APIRouter, HTTPException
from app.user.api.dto import DeleteAccountDTO, UpdateProfileDTO
from app.user.api.dependencies import UserHandlerDep
from app.auth.api.dependencies import CurrentUserDep

user_router = APIRouter(prefix="/user", tags=["User"])


def _user_id(current_user: dict) -> str:
    user_id = current_user.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="User ID not found in token")
    return user_id


@user_router.get("/profile")
async def get_profile(current_user: CurrentUserDep, user_handler: UserHandlerDep):
    """
    Get user profile information (name, email and dating preferences).
    Requires authentication.
    """
    return await user_handler.get_user_profile(_user_id(current_user))


@user_router.put("/profile")
async def update_profile(
    profile_data: UpdateProfileDTO,
    current_user: CurrentUserDep,
    user_handler: UserHandlerDep,
):
    """Replace the dating profile used to personalise suggestions."""
    return await user_handler.update_user_profile(_user_id(current_user), profile_data)


@user_router.delete("/account")
async def delete_account(
    delete_data: DeleteAccountDTO,
    current_user: CurrentUserDep,
    user_handler: UserHandlerDep,
):
    """
    Delete user account and all related data.
    Requires authentication and password confirmation.
    """
    return await user_handler.delete_account(_user_id(current_user), delete_data)
