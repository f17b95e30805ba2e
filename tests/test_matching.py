import pytest

import services.matching as matching
from sqlalchemy import func, select

from core.errors import InvalidActionError, NotFoundError, SelfSwipeError
from models.match import Match, Swipe, canonical_pair
from services.matching import get_match_for_pair, record_swipe


async def _match_rows(db) -> int:
    return (await db.execute(select(func.count(Match.id)))).scalar_one()


async def test_reciprocal_like_creates_single_match(db, make_user):
    a = await make_user("A")
    b = await make_user("B")

    first = await record_swipe(db, a.id, b.id, "like")
    assert first.is_match is False
    assert first.match_id is None

    second = await record_swipe(db, b.id, a.id, "like")
    assert second.is_match is True
    assert second.is_new_match is True
    assert second.match_id is not None

    repeat = await record_swipe(db, b.id, a.id, "like")
    assert repeat.is_match is True
    assert repeat.is_new_match is False
    assert repeat.match_id == second.match_id
    assert await _match_rows(db) == 1


async def test_pass_blocks_until_superseded(db, make_user):
    a = await make_user("A")
    b = await make_user("B")

    await record_swipe(db, a.id, b.id, "like")
    passed = await record_swipe(db, b.id, a.id, "pass")
    assert passed.is_match is False
    assert await _match_rows(db) == 0

    changed = await record_swipe(db, b.id, a.id, "like")
    assert changed.is_new_match is True

    swipe = (await db.execute(
        select(Swipe).where(Swipe.actor_id == b.id, Swipe.target_id == a.id)
    )).scalar_one()
    assert swipe.action == "like"


async def test_superlike_counts_as_positive(db, make_user):
    a = await make_user("A")
    b = await make_user("B")

    await record_swipe(db, a.id, b.id, "superlike")
    outcome = await record_swipe(db, b.id, a.id, "like")

    assert outcome.is_new_match is True
    match = await get_match_for_pair(db, b.id, a.id)
    assert (match.user1_id, match.user2_id) == canonical_pair(a.id, b.id)
    assert match.has_member(a.id)
    assert match.other_user_id(a.id) == b.id


async def test_one_sided_likes_never_match(db, make_user):
    a = await make_user("A")
    b = await make_user("B")
    c = await make_user("C")

    await record_swipe(db, a.id, b.id, "like")
    await record_swipe(db, a.id, c.id, "like")
    await record_swipe(db, c.id, b.id, "like")

    assert await _match_rows(db) == 0


async def test_pass_after_match_keeps_the_match(db, make_user):
    a = await make_user("A")
    b = await make_user("B")
    await record_swipe(db, a.id, b.id, "like")
    created = await record_swipe(db, b.id, a.id, "like")

    outcome = await record_swipe(db, a.id, b.id, "pass")

    assert outcome.is_match is False
    match = await get_match_for_pair(db, a.id, b.id)
    assert match.id == created.match_id


async def test_self_swipe_is_rejected(db, make_user):
    a = await make_user("A")

    for action in ("like", "pass", "superlike", "bogus"):
        with pytest.raises(SelfSwipeError):
            await record_swipe(db, a.id, a.id, action)


async def test_unknown_action_is_rejected(db, make_user):
    a = await make_user("A")
    b = await make_user("B")

    with pytest.raises(InvalidActionError):
        await record_swipe(db, a.id, b.id, "maybe")


async def test_unknown_target(db, make_user):
    a = await make_user("A")
    a_id = a.id

    with pytest.raises(NotFoundError):
        await record_swipe(db, a_id, a_id + 1, "like")

    assert (await db.execute(select(func.count(Swipe.id)))).scalar_one() == 0


async def test_racing_first_swipes_create_one_match(db, session_factory, monkeypatch, make_user):
    a = await make_user("A")
    b = await make_user("B")
    a_id, b_id = a.id, b.id
    original_find_pair = matching._find_pair
    lookups = []
    rival_outcomes = []

    async def _find_pair_then_race(session, user1_id, user2_id):
        pair = await original_find_pair(session, user1_id, user2_id)
        lookups.append((session, pair))
        if session is db and len([s for s, _ in lookups if s is db]) == 1:
            # Вторая сессия успевает вставить ту же пару между чтением и вставкой
            async with session_factory() as rival:
                rival_outcomes.append(await record_swipe(rival, b_id, a_id, "like"))
        return pair

    monkeypatch.setattr(matching, "_find_pair", _find_pair_then_race)

    outcome = await record_swipe(db, a_id, b_id, "like")

    db_lookups = [pair for session, pair in lookups if session is db]
    assert len(db_lookups) == 2
    assert db_lookups[0] is None and db_lookups[1] is not None
    assert rival_outcomes[0].is_new_match is False
    assert outcome.is_new_match is True
    assert await _match_rows(db) == 1
