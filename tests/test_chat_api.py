from pydantic_ai.messages import ModelResponse, SystemPromptPart, TextPart, ToolCallPart

from app.core.config import settings
from app.user.entities.entity import UserProfile
from tests.fakes import PLACE_SEARCH_PATH, place

COOKIE = settings.GUEST_COOKIE_NAME


def _reply(text: str) -> ModelResponse:
    return ModelResponse(parts=[TextPart(content=text)])


def _guest_cookie(ctx, used: int = 0) -> str:
    manager = ctx.app.state.guest_manager
    session, _ = manager.issue()
    return manager.encode(session.model_copy(update={"messages_used": used}))


def test_no_credential_is_rejected_without_side_effects(ctx):
    res = ctx.client.post("/chat", json={"message": "hello"})

    assert res.status_code == 401
    assert res.json()["status"] is False
    assert ctx.model.requests == []
    assert ctx.chats.conversations == {}
    assert COOKIE not in res.cookies


def test_invalid_bearer_without_cookie_is_unauthorized(ctx):
    res = ctx.client.post("/chat", json={"message": "hello"}, headers={"Authorization": "Bearer nope"})
    assert res.status_code == 401
    assert ctx.model.requests == []


def test_missing_message_is_bad_request(ctx, signed_in):
    _, headers = signed_in()
    for body in ({}, {"message": ""}, {"message": "   "}):
        res = ctx.client.post("/chat", json=body, headers=headers)
        assert res.status_code == 400
    assert ctx.model.requests == []


def test_malformed_chat_body_is_bad_request(ctx, signed_in):
    _, headers = signed_in()

    wrong_type = ctx.client.post("/chat", json={"message": 5}, headers=headers)
    assert wrong_type.status_code == 400
    assert wrong_type.json() == {"status": False, "message": "message: Input should be a valid string"}

    not_json = ctx.client.post(
        "/chat", content="message=hi", headers={**headers, "Content-Type": "application/json"}
    )
    assert not_json.status_code == 400
    assert not_json.json() == {"status": False, "message": "Request body is not valid JSON"}
    assert ctx.model.requests == []


def test_guest_turn_reissues_cookie_and_is_not_persisted(ctx):
    ctx.model.script(_reply("Hey there!"))
    ctx.client.cookies.set(COOKIE, _guest_cookie(ctx, used=0))

    res = ctx.client.post("/chat", json={"message": "Plan a date"})

    assert res.status_code == 200
    body = res.json()
    assert body == {
        "reply": "Hey there!",
        "isGuest": True,
        "messagesRemaining": settings.GUEST_MAX_MESSAGES - 1,
        "conversationId": None,
    }
    reissued = res.cookies.get(COOKIE)
    assert reissued
    assert ctx.app.state.guest_manager.decode(reissued).messages_used == 1
    assert "httponly" in res.headers["set-cookie"].lower()
    assert ctx.chats.conversations == {}


def test_guest_gets_no_personal_context(ctx):
    ctx.model.script(_reply("ok"))
    ctx.client.cookies.set(COOKIE, _guest_cookie(ctx))

    ctx.client.post("/chat", json={"message": "hi", "conversationId": "ignored"})

    sent = ctx.model.requests[0]
    assert len(sent) == 2
    system = sent[0].parts[0]
    assert isinstance(system, SystemPromptPart)
    assert "USER PROFILE" not in system.content


def test_exhausted_guest_gets_403(ctx):
    ctx.client.cookies.set(COOKIE, _guest_cookie(ctx, used=settings.GUEST_MAX_MESSAGES))

    res = ctx.client.post("/chat", json={"message": "one more?"})

    assert res.status_code == 403
    assert res.json()["max_messages"] == settings.GUEST_MAX_MESSAGES
    assert ctx.model.requests == []


def test_malformed_guest_cookie_is_invalid_session(ctx):
    ctx.client.cookies.set(COOKIE, "not-a-token")
    res = ctx.client.post("/chat", json={"message": "hi"})
    assert res.status_code == 401
    assert ctx.model.requests == []


def test_guest_upstream_failure_does_not_consume_quota(ctx):
    ctx.model.script(RuntimeError("provider down"))
    token = _guest_cookie(ctx, used=2)
    ctx.client.cookies.set(COOKIE, token)

    res = ctx.client.post("/chat", json={"message": "hi"})

    assert res.status_code == 502
    assert COOKIE not in res.cookies


def test_signed_in_turn_is_persisted_with_context(ctx, signed_in):
    user_id, headers = signed_in()
    ctx.users.profiles[user_id] = UserProfile(location="Austin, TX")
    ctx.model.script(_reply("How about a picnic?"))

    res = ctx.client.post("/chat", json={"message": "Plan a Saturday date"}, headers=headers)

    assert res.status_code == 200
    body = res.json()
    assert body["isGuest"] is False
    assert body["messagesRemaining"] is None
    conversation = ctx.chats.conversations[body["conversationId"]]
    assert conversation.user_id == user_id
    assert conversation.title == "Plan a Saturday date"
    assert [(m.role.value, m.content) for m in conversation.messages] == [
        ("user", "Plan a Saturday date"),
        ("assistant", "How about a picnic?"),
    ]
    assert "Location: Austin, TX" in ctx.model.requests[0][0].parts[0].content


def test_signed_in_follow_up_uses_history(ctx, signed_in):
    _, headers = signed_in()
    ctx.model.script(_reply("first"), _reply("second"))

    first = ctx.client.post("/chat", json={"message": "one"}, headers=headers).json()
    second = ctx.client.post(
        "/chat", json={"message": "two", "conversationId": first["conversationId"]}, headers=headers
    ).json()

    assert second["conversationId"] == first["conversationId"]
    conversation = ctx.chats.conversations[first["conversationId"]]
    assert conversation.message_count == 4
    assert [m.position for m in conversation.messages] == [0, 1, 2, 3]
    # system, user "one", assistant "first", user "two"
    assert len(ctx.model.requests[1]) == 4


def test_conversation_of_another_user_starts_fresh(ctx, signed_in):
    _, alice = signed_in("alice@example.com")
    bob_id, bob = signed_in("bob@example.com")
    ctx.model.script(_reply("a"), _reply("b"))

    alice_conv = ctx.client.post("/chat", json={"message": "mine"}, headers=alice).json()["conversationId"]
    bob_conv = ctx.client.post(
        "/chat", json={"message": "sneaky", "conversationId": alice_conv}, headers=bob
    ).json()["conversationId"]

    assert bob_conv != alice_conv
    assert ctx.chats.conversations[alice_conv].message_count == 2
    assert ctx.chats.conversations[bob_conv].user_id == bob_id
    assert len(ctx.model.requests[1]) == 2


def test_persistence_failure_is_reported_and_nothing_saved(ctx, signed_in):
    _, headers = signed_in()
    ctx.model.script(_reply("lost"))
    ctx.chats.fail_next_append = True

    res = ctx.client.post("/chat", json={"message": "hi"}, headers=headers)

    assert res.status_code == 500
    assert ctx.chats.conversations == {}


def test_tool_loop_through_the_endpoint(ctx, signed_in):
    _, headers = signed_in()
    ctx.maps.set(PLACE_SEARCH_PATH, {"status": "OK", "results": [place("Uchi")]})
    ctx.model.script(
        ModelResponse(parts=[ToolCallPart(tool_name="search_venues", args={"query": "sushi"}, tool_call_id="t")]),
        _reply("Uchi is lovely."),
    )

    res = ctx.client.post("/chat", json={"message": "sushi?"}, headers=headers)

    assert res.status_code == 200
    assert res.json()["reply"] == "Uchi is lovely."
    assert len(ctx.maps.requests) == 1


def test_not_converged_is_500(ctx, signed_in):
    _, headers = signed_in()
    looping = ModelResponse(parts=[ToolCallPart(tool_name="teleport", args={}, tool_call_id="x")])
    ctx.model.script(looping, repeat_last=True)

    res = ctx.client.post("/chat", json={"message": "loop"}, headers=headers)

    assert res.status_code == 500
    assert len(ctx.model.requests) == settings.MAX_TOOL_ROUND_TRIPS
    assert ctx.chats.conversations == {}


def test_guest_endpoints(ctx):
    check = ctx.client.get("/guest/check-token").json()
    assert check == {"hasToken": False, "messagesRemaining": None}

    res = ctx.client.post("/guest")
    assert res.status_code == 200
    assert res.json()["data"]["messagesRemaining"] == settings.GUEST_MAX_MESSAGES
    assert COOKIE in res.cookies

    check = ctx.client.get("/guest/check-token").json()
    assert check == {"hasToken": True, "messagesRemaining": settings.GUEST_MAX_MESSAGES}


def test_conversation_routes(ctx, signed_in):
    _, headers = signed_in()
    _, other = signed_in("other@example.com")
    ctx.model.script(_reply("a"), _reply("b"))
    first = ctx.client.post("/chat", json={"message": "first chat"}, headers=headers).json()["conversationId"]
    second = ctx.client.post("/chat", json={"message": "second chat"}, headers=headers).json()["conversationId"]

    listed = ctx.client.get("/chat/conversations", headers=headers).json()["data"]["conversations"]
    assert [c["conversation_id"] for c in listed] == [second, first]
    assert listed[0]["title"] == "second chat"

    got = ctx.client.get(f"/chat/conversations/{first}", headers=headers).json()["data"]
    assert [m["role"] for m in got["messages"]] == ["user", "assistant"]

    assert ctx.client.get(f"/chat/conversations/{first}", headers=other).status_code == 404
    assert ctx.client.delete(f"/chat/conversations/{first}", headers=other).status_code == 404
    assert ctx.client.delete(f"/chat/conversations/{first}", headers=headers).status_code == 200
    assert ctx.client.get(f"/chat/conversations/{first}", headers=headers).status_code == 404
    assert ctx.client.get("/chat/conversations").status_code == 401


def test_conversation_list_pages(ctx, signed_in):
    _, headers = signed_in()
    ctx.model.script(_reply("ok"), repeat_last=True)
    ids = [
        ctx.client.post("/chat", json={"message": f"chat {i}"}, headers=headers).json()["conversationId"]
        for i in range(3)
    ]

    page = ctx.client.get("/chat/conversations", params={"limit": 2, "offset": 1}, headers=headers).json()["data"]

    assert [c["conversation_id"] for c in page["conversations"]] == [ids[1], ids[0]]
    assert page["next_offset"] == 3
    assert ctx.client.get("/chat/conversations", params={"limit": 0}, headers=headers).status_code == 400
