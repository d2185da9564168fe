def _register(ctx, email="jo@example.com", password="correct-horse"):
    return ctx.client.post("/auth/register", json={"name": "Jo", "email": email, "password": password})


def test_register_login_and_refresh(ctx):
    res = _register(ctx)
    assert res.status_code == 200
    tokens = res.json()["data"]
    assert tokens["token_type"] == "bearer"

    stored = next(iter(ctx.users.users.values()))
    assert stored.email == "jo@example.com"
    assert stored.password_hash != "correct-horse"

    login = ctx.client.post("/auth/login", json={"email": "JO@example.com ", "password": "correct-horse"})
    assert login.status_code == 200

    refreshed = ctx.client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    assert refreshed.json()["data"]["access_token"]


def test_duplicate_registration_and_bad_login(ctx):
    _register(ctx)
    assert _register(ctx).status_code == 400
    assert ctx.client.post("/auth/login", json={"email": "jo@example.com", "password": "nope-nope"}).status_code == 401
    assert ctx.client.post("/auth/login", json={"email": "who@example.com", "password": "whatever"}).status_code == 401


def test_short_password_is_rejected(ctx):
    assert _register(ctx, password="short").status_code == 400


def test_access_token_is_not_a_refresh_token(ctx):
    tokens = _register(ctx).json()["data"]
    assert ctx.client.post("/auth/refresh", json={"refresh_token": tokens["access_token"]}).status_code == 400


def test_profile_roundtrip(ctx):
    tokens = _register(ctx).json()["data"]
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    empty = ctx.client.get("/user/profile", headers=headers).json()["data"]
    assert empty["name"] == "Jo"
    assert empty["profile"]["location"] is None

    res = ctx.client.put(
        "/user/profile",
        json={"age": 31, "location": "Austin, TX", "outdoor": False},
        headers=headers,
    )
    assert res.status_code == 200

    profile = ctx.client.get("/user/profile", headers=headers).json()["data"]["profile"]
    assert profile["age"] == 31
    assert profile["outdoor"] is False

    assert ctx.client.put("/user/profile", json={"age": 12}, headers=headers).status_code == 400
    assert ctx.client.get("/user/profile").status_code == 401


def test_delete_account_requires_password(ctx):
    tokens = _register(ctx).json()["data"]
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    wrong = ctx.client.request("DELETE", "/user/account", json={"password": "wrong-one"}, headers=headers)
    assert wrong.status_code == 401

    ok = ctx.client.request("DELETE", "/user/account", json={"password": "correct-horse"}, headers=headers)
    assert ok.status_code == 200
    assert ctx.users.users == {}
    assert ctx.client.get("/user/profile", headers=headers).status_code == 401


def test_health_and_root(ctx):
    health = ctx.client.get("/health").json()
    assert health["startup_complete"] is True
    assert health["checks"]["maps"] == "configured"
    assert ctx.client.get("/").json()["status"] == "running"
