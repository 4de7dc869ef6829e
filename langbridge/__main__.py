"""CLI interface for LangBridge.

Usage:
    python -m langbridge review                 Start a review session
    python -m langbridge add "hola" "hello"     Add a new card
    python -m langbridge due                    Show how many cards are due
    python -m langbridge stats                  Show your statistics
    python -m langbridge speak                  Show and complete today's speaking challenge
    python -m langbridge streak                 Show study and speaking streaks
"""

import argparse
import asyncio
import logging

from backend.config import settings
from backend.database import async_session, engine
from backend.errors import InvalidRatingError, NotFoundError
from backend.models import Base
from backend.services.cards import CardService
from backend.services.challenges import SpeakingChallengeService
from backend.services.dashboard import build_dashboard
from backend.services.review import finish_review, start_review
from backend.services.sessions import StudySessionService
from backend.services.users import UserService


async def ensure_db() -> None:
    """Create tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ensure_user() -> int:
    """Ensure there's a default learner and return the ID."""
    async with async_session() as db:
        user = await UserService.from_db(db).current()
        return user.id


async def cmd_review(args: argparse.Namespace) -> None:
    """Run an interactive review session."""
    await ensure_db()
    user_id = await ensure_user()

    async with async_session() as db:
        language = args.language or (await UserService.from_db(db).get(user_id)).selected_language
        review, queue = await start_review(db, user_id, language, max_cards=args.max_cards)

        if not queue:
            print("\nNo cards due for review. You're all caught up!")
            return

        print(f"\n  Review Session ({language})")
        print(f"  {len(queue)} cards due\n")
        print("  Ratings: 1=Again  2=Hard  3=Good  4=Easy")
        print("  Type 'q' to quit\n")

        card = queue[0]
        position = 1
        while card is not None:
            print(f"  [{position}] {card.front}")
            if input("  Press enter to show the answer (q to quit) ").strip().lower() == "q":
                print("\n  Session ended early.")
                break
            print(f"      {card.back}")

            rate_input = input("  Rate [1-4]: ").strip()
            try:
                outcome = await review.rate(card.id, rate_input)
            except InvalidRatingError:
                print("  Please enter 1, 2, 3 or 4.")
                continue

            print(f"  Next review in {outcome.review.interval_days} days\n")
            card = outcome.next_card
            position += 1

        session = await finish_review(db, review)

    print("\n  Session Complete!")
    print(f"  Reviewed: {session.cards_studied}  Accuracy: {session.accuracy}%\n")


async def cmd_add(args: argparse.Namespace) -> None:
    """Add a new card, due immediately."""
    await ensure_db()

    async with async_session() as db:
        card = await CardService.from_db(db).create(
            front=args.front,
            back=args.back,
            language=args.language,
            category=args.category,
        )

    print(f"  Added {card.language} card {card.id}: {card.front} -> {card.back}")


async def cmd_due(args: argparse.Namespace) -> None:
    """Show how many cards are due."""
    await ensure_db()
    language = args.language or settings.default_language

    async with async_session() as db:
        due = await CardService.from_db(db).due(language)

    print(f"  {len(due)} {language} cards due")


async def cmd_stats(args: argparse.Namespace) -> None:
    """Show learner statistics."""
    await ensure_db()
    await ensure_user()

    async with async_session() as db:
        data = await build_dashboard(db)

    cards = data.card_stats
    weekly = data.weekly_stats
    print(f"\n  LangBridge Statistics ({data.user.selected_language})")
    print(f"  {'Total cards:':<22} {cards.total}")
    print(f"  {'Due now:':<22} {cards.due}")
    print(f"  {'New:':<22} {cards.new}")
    print(f"  {'Learned (>7 days):':<22} {cards.learned}")
    print(f"  {'Daily goal:':<22} {data.daily_goal_progress:.0f}% of {data.user.daily_goal}")
    print(f"  {'Sessions this week:':<22} {weekly.sessions_count}")
    print(f"  {'Cards this week:':<22} {weekly.total_cards}")
    print(f"  {'Minutes this week:':<22} {weekly.total_time_minutes}")
    print(f"  {'Average accuracy:':<22} {weekly.average_accuracy:.0f}%")
    print(f"  {'Study streak:':<22} {data.study_streak.current_streak} days")
    print(f"  {'Speaking streak:':<22} {data.speaking_streak.current_streak} days")
    print()


async def cmd_speak(args: argparse.Namespace) -> None:
    """Show today's speaking challenge and optionally mark it done."""
    await ensure_db()
    user_id = await ensure_user()
    language = args.language or settings.default_language

    async with async_session() as db:
        challenges = SpeakingChallengeService.from_db(db)
        try:
            daily = await challenges.daily(language, user_id=user_id)
        except NotFoundError:
            print(f"  No speaking challenges for {language} yet.")
            return

        print(f"\n  Today's challenge ({daily.challenge.difficulty}):")
        print(f"  {daily.challenge.prompt}\n")
        if daily.is_completed:
            print("  Already completed today. See you tomorrow!")
            return

        if args.done:
            await challenges.complete(daily.challenge.id, user_id)
            info = await challenges.streak(user_id=user_id)
            print(f"  Completed! Speaking streak: {info.current_streak} days")


async def cmd_streak(args: argparse.Namespace) -> None:
    """Show study and speaking streaks."""
    await ensure_db()
    user_id = await ensure_user()

    async with async_session() as db:
        study = await StudySessionService.from_db(db).streak(user_id=user_id, mode=args.mode)
        speaking = await SpeakingChallengeService.from_db(db).streak(user_id=user_id, mode=args.mode)

    print(f"  Study streak:    {study.current_streak} days ({study.total_completed} sessions)")
    print(f"  Speaking streak: {speaking.current_streak} days ({speaking.total_completed} completed)")


def main() -> None:
    """Entry point for the LangBridge CLI application."""
    parser = argparse.ArgumentParser(
        prog="langbridge",
        description="LangBridge vocabulary review and speaking practice",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # review
    review_parser = subparsers.add_parser("review", help="Start a review session")
    review_parser.add_argument("-l", "--language", help="Language to study")
    review_parser.add_argument(
        "--max-cards", type=int, default=settings.max_cards_per_session, help="Max cards per session"
    )

    # add
    add_parser = subparsers.add_parser("add", help="Add a new card")
    add_parser.add_argument("front", help="Front of the card (target language)")
    add_parser.add_argument("back", help="Back of the card (translation)")
    add_parser.add_argument("-l", "--language", help="Language track")
    add_parser.add_argument("-c", "--category", default="general", help="Category")

    # due
    due_parser = subparsers.add_parser("due", help="Show cards due for review")
    due_parser.add_argument("-l", "--language", help="Language track")

    # stats
    subparsers.add_parser("stats", help="Show your statistics")

    # speak
    speak_parser = subparsers.add_parser("speak", help="Show today's speaking challenge")
    speak_parser.add_argument("-l", "--language", help="Language track")
    speak_parser.add_argument("--done", action="store_true", help="Mark today's challenge completed")

    # streak
    streak_parser = subparsers.add_parser("streak", help="Show your streaks")
    streak_parser.add_argument(
        "--mode", choices=["index", "calendar"], default=None, help="Streak walk to use"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not args.command:
        parser.print_help()
        return

    cmd_map = {
        "review": cmd_review,
        "add": cmd_add,
        "due": cmd_due,
        "stats": cmd_stats,
        "speak": cmd_speak,
        "streak": cmd_streak,
    }

    asyncio.run(cmd_map[args.command](args))


if __name__ == "__main__":
    main()
