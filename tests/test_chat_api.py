import pytest


@pytest.fixture
def matched_pair(client, make_user, auth_headers):
    async def _matched_pair():
        a = await make_user("Asha")
        b = await make_user("Bilal")
        for actor, target in ((a, b), (b, a)):
            response = await client.post(
                "/matches/swipe",
                json={"targetUserId": target.id, "action": "like"},
                headers=auth_headers(actor),
            )
        return a, b, response.json()["matchId"]

    return _matched_pair


async def test_send_and_read_messages(client, matched_pair, auth_headers):
    a, b, match_id = await matched_pair()
    url = f"/chat/matches/{match_id}/messages"

    sent = await client.post(url, json={"content": " hey! "}, headers=auth_headers(a))
    assert sent.status_code == 201
    assert sent.json()["content"] == "hey!"
    assert sent.json()["isMine"] is True

    reply = await client.post(
        url, json={"content": "hi", "replyTo": sent.json()["id"]}, headers=auth_headers(b)
    )
    assert reply.json()["replyTo"] == sent.json()["id"]

    listing = (await client.get(url, headers=auth_headers(b))).json()
    assert [m["content"] for m in listing["messages"]] == ["hi", "hey!"]
    assert [m["isMine"] for m in listing["messages"]] == [True, False]

    unread = (await client.get("/chat/unread-count", headers=auth_headers(b))).json()
    assert unread == {"count": 1}

    matches = (await client.get("/matches", headers=auth_headers(b))).json()
    assert matches["matches"][0]["lastMessage"] == "hi"
    assert matches["matches"][0]["unreadCount"] == 1

    notifications = (await client.get("/notifications", params={"type": "message"}, headers=auth_headers(b))).json()
    assert notifications["notifications"][0]["title"] == "New message from Asha"


async def test_mark_read_only_by_recipient(client, matched_pair, auth_headers):
    a, b, match_id = await matched_pair()
    sent = await client.post(
        f"/chat/matches/{match_id}/messages", json={"content": "ping"}, headers=auth_headers(a)
    )
    message_id = sent.json()["id"]

    by_sender = await client.put(f"/chat/messages/{message_id}/read", headers=auth_headers(a))
    by_recipient = await client.put(f"/chat/messages/{message_id}/read", headers=auth_headers(b))

    assert by_sender.status_code == 403
    assert by_recipient.json()["isRead"] is True
    assert (await client.get("/chat/unread-count", headers=auth_headers(b))).json() == {"count": 0}


async def test_delete_is_soft_and_sender_only(client, matched_pair, auth_headers):
    a, b, match_id = await matched_pair()
    url = f"/chat/matches/{match_id}/messages"
    sent = await client.post(url, json={"content": "oops"}, headers=auth_headers(a))
    message_id = sent.json()["id"]

    by_recipient = await client.delete(f"/chat/messages/{message_id}", headers=auth_headers(b))
    by_sender = await client.delete(f"/chat/messages/{message_id}", headers=auth_headers(a))

    assert by_recipient.status_code == 403
    assert by_sender.status_code == 204
    message = (await client.get(url, headers=auth_headers(b))).json()["messages"][0]
    assert message["isDeleted"] is True
    assert message["content"] == "This message was deleted"


async def test_chat_is_members_only(client, matched_pair, make_user, auth_headers):
    a, b, match_id = await matched_pair()
    outsider = await make_user("Outsider")

    listing = await client.get(f"/chat/matches/{match_id}/messages", headers=auth_headers(outsider))
    sending = await client.post(
        f"/chat/matches/{match_id}/messages", json={"content": "hi"}, headers=auth_headers(outsider)
    )

    assert listing.status_code == 404
    assert sending.status_code == 404


async def test_message_validation(client, matched_pair, auth_headers):
    a, b, match_id = await matched_pair()
    url = f"/chat/matches/{match_id}/messages"

    empty = await client.post(url, json={"content": "  "}, headers=auth_headers(a))
    too_long = await client.post(url, json={"content": "x" * 1001}, headers=auth_headers(a))
    bad_reply = await client.post(url, json={"content": "re", "replyTo": 12345}, headers=auth_headers(a))

    assert empty.status_code == 400
    assert too_long.status_code == 400
    assert bad_reply.status_code == 404
