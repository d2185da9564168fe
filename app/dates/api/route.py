from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request

from app.auth.api.dependencies import get_current_user
from app.dates.api.dto import CreateDateDTO, UpdateDateDTO
from app.dates.service.date_service import DateService

dates_router = APIRouter(prefix="/dates", tags=["Dates"])


def get_date_service(request: Request) -> DateService:
    service = getattr(request.app.state, "date_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Date service not initialized")
    return service


DateServiceDep = Annotated[DateService, Depends(get_date_service)]


@dates_router.get("")
async def list_dates(date_service: DateServiceDep, current_user: dict = Depends(get_current_user)):
    """All dates for the signed-in user, newest first."""
    dates = await date_service.list_dates(current_user["user_id"])
    return {"dates": [d.model_dump(mode="json") for d in dates]}


@dates_router.post("")
async def create_date(
    body: CreateDateDTO,
    date_service: DateServiceDep,
    current_user: dict = Depends(get_current_user),
):
    """Create a date, optionally linking one of the user's conversations."""
    date = await date_service.create_date(current_user["user_id"], body.name or "", body.conversation_id)
    return {"date": date.model_dump(mode="json")}


@dates_router.patch("/{date_id}")
async def update_date(
    date_id: str,
    body: UpdateDateDTO,
    date_service: DateServiceDep,
    current_user: dict = Depends(get_current_user),
):
    """Rate or annotate a date."""
    date = await date_service.update_date(
        current_user["user_id"], date_id, body.model_dump(exclude_unset=True)
    )
    return {"date": date.model_dump(mode="json")}


@dates_router.delete("/{date_id}")
async def delete_date(
    date_id: str,
    date_service: DateServiceDep,
    current_user: dict = Depends(get_current_user),
):
    """Delete a date and its linked conversations."""
    await date_service.delete_date(current_user["user_id"], date_id)
    return {"success": True}
