from pydantic_ai.messages import ModelResponse, TextPart


def _start_conversation(ctx, headers, message="plan something") -> str:
    ctx.model.script(ModelResponse(parts=[TextPart(content="sure")]))
    return ctx.client.post("/chat", json={"message": message}, headers=headers).json()["conversationId"]


def test_dates_require_authentication(ctx):
    assert ctx.client.get("/dates").status_code == 401
    assert ctx.client.post("/dates", json={"name": "x"}).status_code == 401


def test_create_list_update_delete(ctx, signed_in):
    _, headers = signed_in()

    created = ctx.client.post("/dates", json={"name": "  Picnic at Zilker  "}, headers=headers)
    assert created.status_code == 200
    date = created.json()["date"]
    assert date["name"] == "Picnic at Zilker"
    assert date["rating"] is None

    updated = ctx.client.patch(f"/dates/{date['id']}", json={"rating": 4, "notes": "windy"}, headers=headers)
    assert updated.json()["date"]["rating"] == 4
    assert updated.json()["date"]["notes"] == "windy"

    # only fields present in the body change
    updated = ctx.client.patch(f"/dates/{date['id']}", json={"notes": None}, headers=headers)
    assert updated.json()["date"]["rating"] == 4
    assert updated.json()["date"]["notes"] is None

    listed = ctx.client.get("/dates", headers=headers).json()["dates"]
    assert [d["id"] for d in listed] == [date["id"]]

    assert ctx.client.delete(f"/dates/{date['id']}", headers=headers).json() == {"success": True}
    assert ctx.client.get("/dates", headers=headers).json()["dates"] == []


def test_validation_errors(ctx, signed_in):
    _, headers = signed_in()
    assert ctx.client.post("/dates", json={"name": "   "}, headers=headers).status_code == 400
    assert ctx.client.post("/dates", json={}, headers=headers).status_code == 400

    date = ctx.client.post("/dates", json={"name": "Dinner"}, headers=headers).json()["date"]
    assert ctx.client.patch(f"/dates/{date['id']}", json={"rating": 6}, headers=headers).status_code == 400
    assert ctx.client.patch(f"/dates/{date['id']}", json={"rating": 0}, headers=headers).status_code == 400


def test_linking_a_conversation(ctx, signed_in):
    _, headers = signed_in()
    conversation_id = _start_conversation(ctx, headers)

    res = ctx.client.post("/dates", json={"name": "Dinner", "conversationId": conversation_id}, headers=headers)
    assert res.status_code == 200
    date = res.json()["date"]
    assert [c["id"] for c in date["conversations"]] == [conversation_id]

    again = ctx.client.post("/dates", json={"name": "Again", "conversationId": conversation_id}, headers=headers)
    assert again.status_code == 400

    # deleting the date removes the linked conversation
    ctx.client.delete(f"/dates/{date['id']}", headers=headers)
    assert conversation_id not in ctx.chats.conversations


def test_dates_are_scoped_to_their_owner(ctx, signed_in):
    _, alice = signed_in("alice@example.com")
    _, bob = signed_in("bob@example.com")
    conversation_id = _start_conversation(ctx, alice)
    date = ctx.client.post("/dates", json={"name": "Alice's"}, headers=alice).json()["date"]

    assert ctx.client.get("/dates", headers=bob).json()["dates"] == []
    assert ctx.client.patch(f"/dates/{date['id']}", json={"rating": 1}, headers=bob).status_code == 404
    assert ctx.client.delete(f"/dates/{date['id']}", headers=bob).status_code == 404
    linked = ctx.client.post("/dates", json={"name": "x", "conversationId": conversation_id}, headers=bob)
    assert linked.status_code == 404
