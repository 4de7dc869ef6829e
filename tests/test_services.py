"""Tests for the services over a real SQLite database."""

import random
from datetime import datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database import async_session
from backend.errors import ConcurrentUpdateError, InvalidRatingError, InvalidStateError, NotFoundError
from backend.services.cards import CardService
from backend.services.challenges import SpeakingChallengeService
from backend.services.dashboard import build_dashboard
from backend.services.review import finish_review, resume_review, start_review
from backend.services.sessions import StudySessionService
from backend.services.users import UserService
from backend.srs.challenges import RandomPicker

# --- Cards ---


@pytest.mark.asyncio
async def test_create_card_defaults(db: AsyncSession, now: datetime) -> None:
    card = await CardService.from_db(db).create("hola", "hello", now=now)
    assert card.id is not None
    assert card.language == "spanish"
    assert card.category == "general"
    assert card.interval == 1
    assert card.ease_factor == 2.5
    assert card.difficulty == 0
    assert card.next_review_at == now
    assert card.version == 1


@pytest.mark.asyncio
async def test_review_persists_schedule(db: AsyncSession, now: datetime) -> None:
    cards = CardService.from_db(db)
    card = await cards.create("gato", "cat", now=now)

    card, result = await cards.review(card.id, "easy", now)
    assert result.interval_days == 3
    assert card.interval == 3
    assert card.ease_factor == pytest.approx(2.65)
    assert card.difficulty == -0.5
    assert card.next_review_at == now + timedelta(days=3)
    assert card.version == 2

    async with async_session() as other:
        stored = await CardService.from_db(other).get(card.id)
        assert stored.interval == 3
        assert stored.version == 2


@pytest.mark.asyncio
async def test_review_rejects_stale_write(db: AsyncSession, now: datetime) -> None:
    cards = CardService.from_db(db)
    card = await cards.create("perro", "dog", now=now)
    card_id = card.id

    # Another writer reviews the card after we read it
    async with async_session() as other:
        await CardService.from_db(other).review(card_id, "good", now)

    with pytest.raises(ConcurrentUpdateError):
        await cards.review(card_id, "again", now)

    # Records loaded before the conflict stay readable
    assert card.id == card_id
    assert card.front == "perro"

    async with async_session() as fresh:
        stored = await CardService.from_db(fresh).get(card_id)
        assert stored.version == 2
        assert stored.interval == 3  # the first review won


@pytest.mark.asyncio
async def test_review_invalid_rating(db: AsyncSession, now: datetime) -> None:
    cards = CardService.from_db(db)
    card = await cards.create("casa", "house", now=now)
    with pytest.raises(InvalidRatingError):
        await cards.review(card.id, "perfect", now)


@pytest.mark.asyncio
async def test_review_missing_card(db: AsyncSession, now: datetime) -> None:
    with pytest.raises(NotFoundError):
        await CardService.from_db(db).review(404, "good", now)


@pytest.mark.asyncio
async def test_update_only_touches_display_fields(db: AsyncSession, now: datetime) -> None:
    cards = CardService.from_db(db)
    card = await cards.create("agua", "water", now=now)
    card, _ = await cards.review(card.id, "good", now)

    card = await cards.update(card.id, back="water (drink)", category="food")
    assert card.back == "water (drink)"
    assert card.category == "food"
    assert card.interval == 3
    assert card.version == 2

    with pytest.raises(ValueError):
        await cards.update(card.id, interval=30)


@pytest.mark.asyncio
async def test_delete_card(db: AsyncSession, now: datetime) -> None:
    cards = CardService.from_db(db)
    card = await cards.create("sol", "sun", now=now)
    await cards.delete(card.id)

    with pytest.raises(NotFoundError):
        await cards.get(card.id)
    with pytest.raises(NotFoundError):
        await cards.delete(card.id)


@pytest.mark.asyncio
async def test_due_cards_by_language(db: AsyncSession, now: datetime) -> None:
    cards = CardService.from_db(db)
    assert await cards.due("spanish", now) == []

    spanish = await cards.create("uno", "one", now=now)
    await cards.create("un", "one", language="french", now=now)
    reviewed = await cards.create("dos", "two", now=now)
    await cards.review(reviewed.id, "good", now)

    due = await cards.due("spanish", now)
    assert [c.id for c in due] == [spanish.id]


@pytest.mark.asyncio
async def test_card_stats(db: AsyncSession, now: datetime) -> None:
    cards = CardService.from_db(db)
    for front in ("a", "b", "c"):
        await cards.create(front, front.upper(), now=now)
    stats = await cards.stats("spanish", now)
    assert (stats.total, stats.due, stats.learned, stats.new) == (3, 3, 0, 3)


# --- Study sessions ---


@pytest.mark.asyncio
async def test_session_lifecycle(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    sessions = StudySessionService.from_db(db)

    session = await sessions.start(user.id, "spanish", now)
    assert session.cards_studied == 0
    assert session.accuracy == 0
    assert session.end_time is None

    session = await sessions.record_rating(session.id, "good")
    session = await sessions.record_rating(session.id, "hard")
    assert session.cards_studied == 2
    assert session.accuracy == 50

    session = await sessions.end(session.id, now=now + timedelta(minutes=12))
    assert session.end_time == now + timedelta(minutes=12)
    assert session.accuracy == 50

    with pytest.raises(InvalidStateError):
        await sessions.end(session.id, now=now)
    with pytest.raises(InvalidStateError):
        await sessions.record_rating(session.id, "good")


@pytest.mark.asyncio
async def test_end_unknown_session(db: AsyncSession, now: datetime) -> None:
    with pytest.raises(NotFoundError):
        await StudySessionService.from_db(db).end(999, now=now)


@pytest.mark.asyncio
async def test_session_counters_reject_stale_write(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    sessions = StudySessionService.from_db(db)
    session = await sessions.start(user.id, "spanish", now)
    session_id = session.id

    # A second worker counts a rating after we loaded the session
    async with async_session() as other:
        await StudySessionService.from_db(other).record_rating(session_id, "good")

    with pytest.raises(ConcurrentUpdateError):
        await sessions.record_rating(session_id, "again")

    async with async_session() as fresh:
        stored = await StudySessionService.from_db(fresh).get(session_id)
        assert stored.cards_studied == 1
        assert stored.correct_count == 1
        assert stored.version == 2


@pytest.mark.asyncio
async def test_weekly_and_recent(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    sessions = StudySessionService.from_db(db)

    first = await sessions.start(user.id, now=now - timedelta(days=1))
    await sessions.end(
        first.id, {"cards_studied": 10, "accuracy": 80}, now=now - timedelta(days=1, minutes=-30)
    )
    second = await sessions.start(user.id, now=now - timedelta(hours=3))
    await sessions.end(second.id, {"cards_studied": 5, "accuracy": 60}, now=now - timedelta(hours=3))

    weekly = await sessions.weekly(now)
    assert weekly.sessions_count == 2
    assert weekly.total_cards == 15
    assert weekly.total_time_minutes == 30
    assert weekly.average_accuracy == 70

    recent = await sessions.recent(limit=1)
    assert [s.id for s in recent] == [second.id]


@pytest.mark.asyncio
async def test_study_streak(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    sessions = StudySessionService.from_db(db)
    for days_ago in (0, 1, 3):
        start = now - timedelta(days=days_ago, hours=1)
        session = await sessions.start(user.id, now=start)
        await sessions.end(session.id, {"cards_studied": 4}, now=start + timedelta(minutes=10))
    # Still running, not a completion
    await sessions.start(user.id, now=now - timedelta(days=2))

    info = await sessions.streak(user_id=user.id, now=now)
    assert info.current_streak == 2
    assert info.total_completed == 3
    assert info.last_completed == now - timedelta(minutes=50)


@pytest.mark.asyncio
async def test_daily_progress(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    sessions = StudySessionService.from_db(db)
    for start, cards, accuracy in (
        (now - timedelta(days=1), 6, 50),
        (now - timedelta(hours=2), 8, 75),
        (now - timedelta(hours=1), 2, 100),
    ):
        session = await sessions.start(user.id, now=start)
        await sessions.end(
            session.id, {"cards_studied": cards, "accuracy": accuracy}, now=start + timedelta(minutes=15)
        )
    # Closed without studying anything
    empty = await sessions.start(user.id, now=now)
    await sessions.end(empty.id, now=now)

    summary = await sessions.progress(user_id=user.id)
    assert [d.day for d in summary.days] == [(now - timedelta(days=1)).date(), now.date()]
    assert summary.days[-1].cards_studied == 10
    assert summary.days[-1].session_count == 2
    assert summary.days[-1].accuracy == 88
    assert summary.sessions_count == 3
    assert summary.total_time_minutes == 45

    latest = await sessions.progress(limit=1, user_id=user.id)
    assert latest.sessions_count == 1
    assert latest.days[0].cards_studied == 2


# --- Review flow ---


@pytest.mark.asyncio
async def test_review_session_flow(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    cards = CardService.from_db(db)
    first = await cards.create("rojo", "red", now=now - timedelta(days=1))
    second = await cards.create("azul", "blue", now=now)
    await cards.create("rouge", "red", language="french", now=now)

    review, queue = await start_review(db, user.id, "spanish", now)
    assert [c.id for c in queue] == [first.id, second.id]

    outcome = await review.rate(first.id, "good", now)
    assert outcome.card.interval == 3
    assert outcome.next_card is not None
    assert outcome.next_card.id == second.id
    assert outcome.session.cards_studied == 1
    assert outcome.session.accuracy == 100

    outcome = await review.rate(second.id, "again", now)
    assert outcome.next_card is None
    assert outcome.session_complete
    assert outcome.session.cards_studied == 2
    assert outcome.session.accuracy == 50

    session = await finish_review(db, review, now=now + timedelta(minutes=5))
    assert session.end_time == now + timedelta(minutes=5)
    assert (await UserService.from_db(db).get(user.id)).streak == 1

    with pytest.raises(InvalidStateError):
        await review.rate(first.id, "good", now)


@pytest.mark.asyncio
async def test_review_session_resumes_from_id(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    cards = CardService.from_db(db)
    card = await cards.create("verde", "green", now=now)
    review, _ = await start_review(db, user.id, "spanish", now)

    async with async_session() as other:
        resumed = await resume_review(other, review.session.id)
        assert (await resumed.next_card(now)).id == card.id
        outcome = await resumed.rate(card.id, 3, now)
        assert outcome.session.cards_studied == 1


@pytest.mark.asyncio
async def test_review_session_rejects_other_language(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    cards = CardService.from_db(db)
    await cards.create("negro", "black", now=now)
    french = await cards.create("noir", "black", language="french", now=now)

    review, _ = await start_review(db, user.id, "spanish", now)
    with pytest.raises(InvalidStateError):
        await review.rate(french.id, "good", now)


@pytest.mark.asyncio
async def test_review_session_rejects_card_rated_twice(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    card = await CardService.from_db(db).create("blanco", "white", now=now)
    review, _ = await start_review(db, user.id, "spanish", now)

    outcome = await review.rate(card.id, "good", now)
    assert outcome.card.interval == 3

    with pytest.raises(InvalidStateError):
        await review.rate(card.id, "good", now)

    stored = await CardService.from_db(db).get(card.id)
    assert stored.interval == 3
    assert review.session.cards_studied == 1


@pytest.mark.asyncio
async def test_review_session_rejects_card_not_due(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    cards = CardService.from_db(db)
    await cards.create("gris", "grey", now=now)
    later = await cards.create("marrón", "brown", now=now)
    later, _ = await cards.review(later.id, "easy", now - timedelta(days=1))
    later_review_at = later.next_review_at

    review, queue = await start_review(db, user.id, "spanish", now)
    assert later.id not in {c.id for c in queue}

    with pytest.raises(InvalidStateError):
        await review.rate(later.id, "again", now)

    stored = await cards.get(later.id)
    assert stored.interval == 3
    assert stored.next_review_at == later_review_at


@pytest.mark.asyncio
async def test_review_session_respects_limit(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    cards = CardService.from_db(db)
    for word in ("uno", "dos", "tres"):
        await cards.create(word, word, now=now)

    review, queue = await start_review(db, user.id, "spanish", now, max_cards=2)
    assert len(queue) == 2
    await review.rate(queue[0].id, "good", now)
    outcome = await review.rate(queue[1].id, "good", now)
    assert outcome.next_card is None


@pytest.mark.asyncio
async def test_empty_review_closes_session(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    review, queue = await start_review(db, user.id, "spanish", now)
    assert queue == []
    assert review.session.end_time == now
    assert review.session.cards_studied == 0
    assert review.session.accuracy == 100

    # Nothing was studied, so the closed session is not a study day
    sessions = StudySessionService.from_db(db)
    assert (await sessions.streak(user_id=user.id, now=now)).current_streak == 0
    assert (await sessions.weekly(now, user_id=user.id)).sessions_count == 0


# --- Speaking challenges ---


@pytest.mark.asyncio
async def test_daily_challenge_and_completion(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    challenges = SpeakingChallengeService.from_db(db, picker=RandomPicker(random.Random(5)))
    spanish = [
        await challenges.create("Describe tu casa", difficulty="beginner"),
        await challenges.create("Habla de tu familia", difficulty="intermediate"),
    ]
    await challenges.create("Parle de ton travail", language="french")

    daily = await challenges.daily("spanish", user_id=user.id, now=now)
    assert not daily.is_completed
    assert daily.challenge.id in {c.id for c in spanish}

    completion = await challenges.complete(daily.challenge.id, user.id, now=now)
    assert completion.language == "spanish"

    again = await challenges.daily("spanish", user_id=user.id, now=now + timedelta(hours=1))
    assert again.is_completed
    assert again.challenge.id == daily.challenge.id
    assert again.completion is not None
    assert again.completion.id == completion.id

    tomorrow = await challenges.daily("spanish", user_id=user.id, now=now + timedelta(days=1))
    assert not tomorrow.is_completed


@pytest.mark.asyncio
async def test_daily_challenge_without_challenges(db: AsyncSession, now: datetime) -> None:
    with pytest.raises(NotFoundError):
        await SpeakingChallengeService.from_db(db).daily("german", now=now)


@pytest.mark.asyncio
async def test_challenge_difficulty_validated(db: AsyncSession) -> None:
    with pytest.raises(ValueError):
        await SpeakingChallengeService.from_db(db).create("Hola", difficulty="expert")


@pytest.mark.asyncio
async def test_speaking_streak_and_history(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    challenges = SpeakingChallengeService.from_db(db)
    challenge = await challenges.create("Cuenta hasta diez")
    for days_ago in (0, 1, 2):
        await challenges.complete(challenge.id, user.id, now=now - timedelta(days=days_ago, hours=1))

    info = await challenges.streak(user_id=user.id, now=now)
    assert info.current_streak == 3
    assert info.total_completed == 3

    history = await challenges.completed(limit=2)
    assert [c.completed_at for c in history] == [
        now - timedelta(hours=1),
        now - timedelta(days=1, hours=1),
    ]


@pytest.mark.asyncio
async def test_deleting_challenge_keeps_completions(db: AsyncSession, now: datetime) -> None:
    user = await UserService.from_db(db).current()
    challenges = SpeakingChallengeService.from_db(db)
    challenge = await challenges.create("Pide un café")
    await challenges.complete(challenge.id, user.id, now=now)

    await challenges.delete(challenge.id)

    info = await challenges.streak(user_id=user.id, now=now)
    assert info.total_completed == 1


# --- Users and dashboard ---


@pytest.mark.asyncio
async def test_current_user_created_once(db: AsyncSession) -> None:
    users = UserService.from_db(db)
    first = await users.current()
    second = await users.current()
    assert first.id == second.id
    assert first.daily_goal == 20
    assert first.selected_language == "spanish"


@pytest.mark.asyncio
async def test_user_preferences(db: AsyncSession) -> None:
    users = UserService.from_db(db)
    user = await users.current()

    user = await users.set_daily_goal(user.id, 30)
    user = await users.set_language(user.id, "french")
    assert user.daily_goal == 30
    assert user.selected_language == "french"

    with pytest.raises(ValueError):
        await users.set_daily_goal(user.id, 0)
    with pytest.raises(ValueError):
        await users.update(user.id, streak=100)


@pytest.mark.asyncio
async def test_dashboard(db: AsyncSession, now: datetime) -> None:
    cards = CardService.from_db(db)
    await cards.create("luna", "moon", now=now)
    await cards.create("estrella", "star", now=now)

    data = await build_dashboard(db, now)
    assert data.user.selected_language == "spanish"
    assert data.card_stats.total == 2
    assert data.card_stats.due == 2
    assert data.weekly_stats.sessions_count == 0
    assert data.study_streak.current_streak == 0
    assert data.speaking_streak.last_completed is None
    assert data.daily_goal_progress == 0
