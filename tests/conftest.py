from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.agents.tools import ToolDispatcher
from app.user.entities.entity import User
from main import create_app, wire_services
from pkg.auth_token_client.client import TokenPayload
from pkg.maps_client.client import GoogleMapsClient
from tests.fakes import (
    InMemoryChatRepository,
    InMemoryDateRepository,
    InMemoryUserRepository,
    MapsStub,
    ScriptedModel,
)


@pytest.fixture
def maps_stub():
    return MapsStub()


@pytest.fixture
def maps_client(maps_stub):
    return GoogleMapsClient("test-maps-key", timeout=5.0, transport=maps_stub.transport())


@pytest.fixture
def dispatcher(maps_client):
    return ToolDispatcher(maps_client)


@pytest.fixture
def model():
    return ScriptedModel()


@pytest.fixture
def ctx(model, maps_client, maps_stub):
    """A fully wired app over in-memory repositories."""
    app = create_app(with_lifespan=False)
    users = InMemoryUserRepository()
    chats = InMemoryChatRepository()
    dates = InMemoryDateRepository(chats)
    wire_services(
        app,
        user_repository=users,
        chat_repository=chats,
        date_repository=dates,
        model=model,
        maps_client=maps_client,
    )
    return SimpleNamespace(
        app=app,
        client=TestClient(app),
        model=model,
        maps=maps_stub,
        users=users,
        chats=chats,
        dates=dates,
    )


@pytest.fixture
def signed_in(ctx):
    """Create a user directly in the repository and return (user_id, auth headers)."""

    def _sign_in(email: str = "alex@example.com", name: str = "Alex"):
        user = User(email=email, password_hash=None, name=name)
        ctx.users.users[user.id] = user
        tokens = ctx.app.state.token_client.create_tokens(TokenPayload(user_id=user.id, email=email))
        return user.id, {"Authorization": f"Bearer {tokens['access_token']}"}

    return _sign_in
