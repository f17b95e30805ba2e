import random

import pytest
from sqlalchemy.orm.exc import StaleDataError

from core.errors import ConcurrencyConflictError, InvalidKindError, NotFoundError
import services.reactions as reactions
from services.reactions import (
    CONFESSION_LEDGER,
    PHOTO_LEDGER,
    recount_all,
    recount_subject,
    toggle_reaction,
    voter_counts,
)
from services.transactions import run_serialized


async def test_heart_reactions_from_two_users(db, make_user, make_confession):
    author = await make_user("Author")
    u1 = await make_user("U1")
    u2 = await make_user("U2")
    confession = await make_confession(author)

    first = await toggle_reaction(db, CONFESSION_LEDGER, confession.id, u1.id, "heart")
    assert (first.count, first.active) == (1, True)

    second = await toggle_reaction(db, CONFESSION_LEDGER, confession.id, u2.id, "heart")
    assert (second.count, second.active) == (2, True)

    third = await toggle_reaction(db, CONFESSION_LEDGER, confession.id, u1.id, "heart")
    assert (third.count, third.active) == (1, False)
    assert third.counts == {"heart": 1, "laugh": 0, "fire": 0, "sad": 0}


async def test_double_toggle_is_a_no_op(db, make_user, make_confession):
    author = await make_user("Author")
    reader = await make_user("Reader")
    confession = await make_confession(author)

    before = confession.reaction_counts["fire"]
    await toggle_reaction(db, CONFESSION_LEDGER, confession.id, reader.id, "fire")
    result = await toggle_reaction(db, CONFESSION_LEDGER, confession.id, reader.id, "fire")

    assert result.active is False
    assert result.count == before
    assert await voter_counts(db, CONFESSION_LEDGER, confession.id) == {
        "heart": 0, "laugh": 0, "fire": 0, "sad": 0,
    }


async def test_kinds_are_independent(db, make_user, make_confession):
    author = await make_user("Author")
    reader = await make_user("Reader")
    confession = await make_confession(author)

    await toggle_reaction(db, CONFESSION_LEDGER, confession.id, reader.id, "heart")
    result = await toggle_reaction(db, CONFESSION_LEDGER, confession.id, reader.id, "laugh")

    assert result.counts == {"heart": 1, "laugh": 1, "fire": 0, "sad": 0}


async def test_counters_match_voters_after_random_sequence(db, make_user, make_confession):
    author = await make_user("Author")
    users = [await make_user(f"User {i}") for i in range(4)]
    confession = await make_confession(author)

    rng = random.Random(42)
    for _ in range(40):
        user = rng.choice(users)
        kind = rng.choice(CONFESSION_LEDGER.kinds)
        result = await toggle_reaction(db, CONFESSION_LEDGER, confession.id, user.id, kind)
        assert result.count >= 0
        assert result.counts == await voter_counts(db, CONFESSION_LEDGER, confession.id)


async def test_unknown_kind_is_rejected(db, make_user, make_confession):
    author = await make_user("Author")
    confession = await make_confession(author)

    with pytest.raises(InvalidKindError):
        await toggle_reaction(db, CONFESSION_LEDGER, confession.id, author.id, "angry")

    with pytest.raises(InvalidKindError):
        await toggle_reaction(db, PHOTO_LEDGER, confession.id, author.id, "heart")


async def test_missing_subject_or_actor(db, make_user, make_confession):
    author = await make_user("Author")
    confession = await make_confession(author)
    # После отката объекты сессии истекают, поэтому id берём заранее
    author_id, confession_id = author.id, confession.id

    with pytest.raises(NotFoundError):
        await toggle_reaction(db, CONFESSION_LEDGER, 404, author_id, "heart")

    with pytest.raises(NotFoundError):
        await toggle_reaction(db, CONFESSION_LEDGER, confession_id, 404, "heart")

    assert await voter_counts(db, CONFESSION_LEDGER, confession_id) == {
        "heart": 0, "laugh": 0, "fire": 0, "sad": 0,
    }


async def test_photo_like_toggle(db, make_user, make_photo):
    owner = await make_user("Owner")
    fan = await make_user("Fan")
    photo = await make_photo(owner, "owner-1", is_main=True)

    liked = await toggle_reaction(db, PHOTO_LEDGER, photo.id, fan.id, "like")
    assert (liked.active, liked.count) == (True, 1)

    unliked = await toggle_reaction(db, PHOTO_LEDGER, photo.id, fan.id, "like")
    assert (unliked.active, unliked.count) == (False, 0)
    assert await voter_counts(db, PHOTO_LEDGER, photo.id) == {"like": 0}


async def test_counter_never_goes_negative(db, make_user, make_confession):
    author = await make_user("Author")
    reader = await make_user("Reader")
    confession = await make_confession(author)
    await toggle_reaction(db, CONFESSION_LEDGER, confession.id, reader.id, "sad")

    # Счётчик испорчен извне: голос есть, а счётчик уже 0
    confession.sad_count = 0
    await db.commit()

    result = await toggle_reaction(db, CONFESSION_LEDGER, confession.id, reader.id, "sad")
    assert (result.count, result.active) == (0, False)


async def test_recount_repairs_diverged_counters(db, make_user, make_confession):
    author = await make_user("Author")
    reader = await make_user("Reader")
    confession = await make_confession(author)
    await toggle_reaction(db, CONFESSION_LEDGER, confession.id, reader.id, "heart")

    confession.heart_count = 7
    confession.laugh_count = 2
    await db.commit()

    assert await recount_subject(db, CONFESSION_LEDGER, confession.id) is True
    assert confession.reaction_counts == {"heart": 1, "laugh": 0, "fire": 0, "sad": 0}
    assert await recount_subject(db, CONFESSION_LEDGER, confession.id) is False
    assert await recount_all(db, CONFESSION_LEDGER) == 0


async def test_conflicting_write_is_retried(db):
    calls = []

    async def _flaky():
        calls.append(1)
        if len(calls) == 1:
            raise StaleDataError("row was updated concurrently")
        return "done"

    assert await run_serialized(db, _flaky, name="flaky", attempts=3) == "done"
    assert len(calls) == 2


async def test_conflict_surfaces_after_retries(db):
    async def _always_stale():
        raise StaleDataError("row was updated concurrently")

    with pytest.raises(ConcurrencyConflictError) as exc:
        await run_serialized(db, _always_stale, name="stale", attempts=2)
    assert exc.value.attempts == 2


async def test_interleaved_toggle_is_retried_without_losing_votes(
    db, session_factory, monkeypatch, make_user, make_confession
):
    author = await make_user("Author")
    u1 = await make_user("U1")
    u2 = await make_user("U2")
    confession = await make_confession(author)
    confession_id, u1_id, u2_id = confession.id, u1.id, u2.id
    original_lock = reactions._lock_subject
    locked_by = []

    async def _lock_then_race(session, ledger, subject_id):
        subject = await original_lock(session, ledger, subject_id)
        locked_by.append(session)
        if session is db and locked_by.count(db) == 1:
            # Другая сессия ставит реакцию, пока эта держит устаревшую версию строки
            async with session_factory() as rival:
                await toggle_reaction(rival, CONFESSION_LEDGER, subject_id, u2_id, "heart")
        return subject

    monkeypatch.setattr(reactions, "_lock_subject", _lock_then_race)

    result = await toggle_reaction(db, CONFESSION_LEDGER, confession_id, u1_id, "heart")

    assert locked_by.count(db) == 2
    assert (result.count, result.active) == (2, True)
    assert result.counts == await voter_counts(db, CONFESSION_LEDGER, confession_id)
