async def _swipe(client, headers, target_id, action="like"):
    return await client.post(
        "/matches/swipe", json={"targetUserId": target_id, "action": action}, headers=headers
    )


async def test_mutual_like_creates_match(client, make_user, make_photo, auth_headers):
    a = await make_user("Asha")
    b = await make_user("Bilal")
    await make_photo(a, "asha-1", is_main=True)

    first = await _swipe(client, auth_headers(a), b.id)
    assert first.json() == {"isMatch": False, "isNewMatch": False, "matchId": None, "matchedUser": None}

    second = await _swipe(client, auth_headers(b), a.id)
    body = second.json()
    assert body["isMatch"] is True
    assert body["isNewMatch"] is True
    assert body["matchedUser"]["id"] == a.id
    assert body["matchedUser"]["photos"][0]["url"] == "https://cdn.test/asha-1.jpg"

    again = await _swipe(client, auth_headers(b), a.id)
    assert again.json()["matchId"] == body["matchId"]
    assert again.json()["isNewMatch"] is False

    for user in (a, b):
        feed = (await client.get("/notifications", headers=auth_headers(user))).json()
        assert [n["type"] for n in feed["notifications"]] == ["match"]
        assert feed["notifications"][0]["relatedId"] == body["matchId"]


async def test_swipe_errors(client, make_user, auth_headers):
    a = await make_user("A")
    b = await make_user("B")
    headers = auth_headers(a)

    self_swipe = await _swipe(client, headers, a.id)
    bad_action = await _swipe(client, headers, b.id, action="maybe")
    self_bad_action = await _swipe(client, headers, a.id, action="maybe")
    missing = await client.post("/matches/swipe", json={"action": "like"}, headers=headers)

    assert self_swipe.status_code == 400
    assert self_swipe.json()["error"]["code"] == "SELF_SWIPE"
    assert bad_action.json()["error"]["code"] == "INVALID_ACTION"
    assert self_bad_action.json()["error"]["code"] == "SELF_SWIPE"
    assert missing.status_code == 400
    assert missing.json()["success"] is False


async def test_superlike_notifies_target(client, make_user, auth_headers):
    a = await make_user("A")
    b = await make_user("B")

    response = await _swipe(client, auth_headers(a), b.id, action="superlike")

    assert response.json()["isMatch"] is False
    feed = (await client.get("/notifications", headers=auth_headers(b))).json()
    assert [n["type"] for n in feed["notifications"]] == ["superlike"]


async def test_incoming_likes(client, make_user, auth_headers):
    me = await make_user("Me")
    fan = await make_user("Fan")
    skipped = await make_user("Skipped")
    rejected = await make_user("Rejected")

    await _swipe(client, auth_headers(fan), me.id)
    await _swipe(client, auth_headers(skipped), me.id, action="pass")
    await _swipe(client, auth_headers(rejected), me.id, action="superlike")
    await _swipe(client, auth_headers(me), rejected.id, action="pass")

    response = await client.get("/matches/likes", headers=auth_headers(me))

    assert [u["id"] for u in response.json()] == [fan.id]


async def test_match_list_and_detail(client, make_user, auth_headers):
    a = await make_user("A")
    b = await make_user("B")
    outsider = await make_user("Outsider")
    await _swipe(client, auth_headers(a), b.id)
    match_id = (await _swipe(client, auth_headers(b), a.id)).json()["matchId"]

    listing = (await client.get("/matches", headers=auth_headers(a))).json()
    detail = await client.get(f"/matches/{match_id}", headers=auth_headers(b))
    foreign = await client.get(f"/matches/{match_id}", headers=auth_headers(outsider))

    assert [m["id"] for m in listing["matches"]] == [match_id]
    assert listing["matches"][0]["user"]["id"] == b.id
    assert listing["matches"][0]["unreadCount"] == 0
    assert detail.json()["user"]["id"] == a.id
    assert foreign.status_code == 404
