from datetime import datetime, timezone

import pytest

from app.agents.prompt import build_system_prompt
from app.chat.entity.chat import ConversationTurn, MessageRole, PastDateRecord, PromptContext
from app.chat.service.context_service import ContextAssembler, render_profile, summarize_past_dates
from app.dates.entity.date import DatePlan
from app.dates.service.date_service import DateService
from app.user.entities.entity import User, UserProfile
from app.user.service.user_service import UserService
from pkg.log.logger import get_logger
from tests.fakes import InMemoryChatRepository, InMemoryDateRepository, InMemoryUserRepository


def _date(name, day, rating=None, notes=None):
    return DatePlan(
        id=name,
        user_id="u1",
        name=name,
        rating=rating,
        notes=notes,
        created_at=datetime(2024, 5, day, tzinfo=timezone.utc),
    )


def test_empty_profile_renders_nothing():
    assert render_profile(None) == []
    assert render_profile(UserProfile()) == []
    assert render_profile(UserProfile(location="   ", interests="")) == []


def test_one_line_per_populated_field():
    profile = UserProfile(age=29, location="Austin, TX", interests="hiking, jazz")
    lines = render_profile(profile)
    assert lines == ["Age: 29", "Location: Austin, TX", "Interests: hiking, jazz"]


def test_false_booleans_are_populated():
    lines = render_profile(UserProfile(outdoor=False, social=True))
    assert lines == ["Outdoor activities: prefers indoor", "Social settings: enjoys social settings"]


def test_past_dates_keep_annotated_only_newest_first():
    dates = [
        _date("Picnic", 1, rating=4),
        _date("Bowling", 3),
        _date("Jazz bar", 5, notes="  great music, too loud  "),
        _date("Museum", 2, rating=2, notes="   "),
    ]
    records = summarize_past_dates(dates)

    assert [r.label for r in records] == ["Jazz bar", "Museum", "Picnic"]
    assert records[0] == PastDateRecord(label="Jazz bar", rating=None, notes="great music, too loud")
    assert records[1].notes is None
    assert records[2].rating == 4


@pytest.fixture
def assembler():
    users = InMemoryUserRepository()
    chats = InMemoryChatRepository()
    dates = InMemoryDateRepository(chats)
    assembler = ContextAssembler(UserService(users, get_logger("test")), DateService(dates))
    return assembler, users, dates


async def test_anonymous_context_is_empty(assembler):
    context_assembler, _, _ = assembler
    context = await context_assembler.assemble(None)
    assert context.is_empty


async def test_signed_in_context_gathers_profile_and_dates(assembler):
    context_assembler, users, dates = assembler
    user = User(email="sam@example.com", name="Sam")
    users.users[user.id] = user
    await users.upsert_profile(user.id, UserProfile(location="Denver", budget="$$"))
    first = await dates.create_date(user.id, "Climbing gym")
    await dates.create_date(user.id, "Unrated dinner")
    await dates.update_date(user.id, first.id, {"rating": 5})

    history = [ConversationTurn(role=MessageRole.USER, content="hi", position=0)]
    context = await context_assembler.assemble(user.id, history)

    assert context.profile_lines == ["Location: Denver", "Budget preference: $$"]
    assert [d.label for d in context.past_dates] == ["Climbing gym"]
    assert context.history == history


def test_system_prompt_omits_empty_sections():
    prompt = build_system_prompt(PromptContext())
    assert "USER PROFILE" not in prompt
    assert "PAST DATE HISTORY" not in prompt
    assert "search_venues" in prompt


def test_system_prompt_renders_profile_and_past_dates():
    context = PromptContext(
        profile_lines=["Location: Austin, TX"],
        past_dates=[PastDateRecord(label="Picnic", rating=4, notes="windy")],
    )
    prompt = build_system_prompt(context)

    assert "USER PROFILE:\nLocation: Austin, TX" in prompt
    assert "rated and provided feedback on 1 past date." in prompt
    assert '1. "Picnic"\n   Rating: 4/5 stars\n   Feedback: windy' in prompt
