from typing import List, Optional, Sequence

from app.chat.entity.chat import ConversationTurn, PastDateRecord, PromptContext
from app.core.logger import get_logger
from app.dates.entity.date import DatePlan
from app.dates.service.date_service import DateService
from app.user.entities.entity import PROFILE_FIELDS, UserProfile
from app.user.service.user_service import UserService

logger = get_logger("ContextAssembler")

PROFILE_LABELS = {
    "age": "Age",
    "gender": "Gender",
    "location": "Location",
    "interests": "Interests",
    "dating_goals": "Dating goals",
    "dating_style": "Dating style",
    "budget": "Budget preference",
    "outdoor": "Outdoor activities",
    "social": "Social settings",
    "dietary_restrictions": "Dietary restrictions",
    "additional_notes": "Additional context",
}

BOOLEAN_RENDERINGS = {
    "outdoor": ("enjoys", "prefers indoor"),
    "social": ("enjoys social settings", "prefers quieter settings"),
}


def _is_populated(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def render_profile(profile: Optional[UserProfile]) -> List[str]:
    """One line per populated profile field, in PROFILE_FIELDS order."""
    if profile is None:
        return []

    lines = []
    for field in PROFILE_FIELDS:
        value = getattr(profile, field)
        if not _is_populated(value):
            continue
        if field in BOOLEAN_RENDERINGS:
            yes, no = BOOLEAN_RENDERINGS[field]
            value = yes if value else no
        elif isinstance(value, str):
            value = value.strip()
        lines.append(f"{PROFILE_LABELS[field]}: {value}")
    return lines


def summarize_past_dates(dates: Sequence[DatePlan]) -> List[PastDateRecord]:
    """Rated or annotated dates, most recent first."""
    annotated = [d for d in dates if d.is_annotated]
    annotated.sort(key=lambda d: d.created_at.timestamp() if d.created_at else 0, reverse=True)
    return [
        PastDateRecord(
            label=d.name,
            rating=d.rating,
            notes=d.notes.strip() if d.notes and d.notes.strip() else None,
        )
        for d in annotated
    ]


class ContextAssembler:
    """Gathers profile and past-date feedback for the prompt. Read only."""

    def __init__(self, user_service: UserService, date_service: DateService):
        self.user_service = user_service
        self.date_service = date_service

    async def assemble(
        self, user_id: Optional[str], history: Sequence[ConversationTurn] = ()
    ) -> PromptContext:
        if not user_id:
            return PromptContext(history=list(history))

        profile = await self.user_service.get_profile(user_id)
        dates = await self.date_service.list_annotated_dates(user_id)

        context = PromptContext(
            profile_lines=render_profile(profile),
            past_dates=summarize_past_dates(dates),
            history=list(history),
        )
        logger.debug(
            f"Context for user {user_id}: {len(context.profile_lines)} profile lines, "
            f"{len(context.past_dates)} past dates, {len(context.history)} turns"
        )
        return context
