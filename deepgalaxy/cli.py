"""
DeepGalaxy command line interface.

Usage:
    deepgalaxy init-db
    deepgalaxy add-deck "Spanish verbs"
    deepgalaxy add-card 1 "hablar" "to speak"
    deepgalaxy decks
    deepgalaxy rename-deck 1 "Spanish irregular verbs"
    deepgalaxy delete-deck 1 [--yes]
    deepgalaxy cards 1
    deepgalaxy edit-card 3 [--front "hablar"] [--back "to talk"]
    deepgalaxy delete-card 3 [--yes]
    deepgalaxy due
    deepgalaxy review [--grade 3] [--limit 20]
    deepgalaxy stats
"""

from __future__ import annotations
import argparse
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from deepgalaxy.analytics import build_dashboard
from deepgalaxy.config import configure_logging
from deepgalaxy.errors import SchedulerError
from deepgalaxy.scheduling import (
    Card,
    Deck,
    ReviewService,
    SqlRepository,
    current_card,
    get_engine,
    grade_current,
    init_db,
    is_finished,
    reveal_answer,
    start_session,
)
from deepgalaxy.scheduling.repository import Repository


logger = logging.getLogger(__name__)

GRADE_LABELS = {
    1: "forgot",
    2: "hard",
    3: "good",
    4: "easy",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def add_deck(repo: Repository, args: argparse.Namespace) -> None:
    now = utc_now()
    deck_id = await repo.add("decks", Deck(name=args.name, created_at=now, updated_at=now))
    print(f"Added deck [{deck_id}] {args.name}")


async def add_card(repo: Repository, args: argparse.Namespace) -> None:
    deck = await repo.get("decks", args.deck_id)
    if deck is None:
        print(f"No deck with id {args.deck_id}.")
        return
    now = utc_now()
    card = Card(
        deck_id=args.deck_id,
        front_text=args.front.strip(),
        back_text=args.back.strip(),
        created_at=now,
        updated_at=now,
    )
    card_id = await repo.add("cards", card)
    print(f"Added card [{card_id}] to deck {deck.name}")


def _confirm(prompt: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    return input(f"{prompt} (type 'yes' to confirm): ").strip().lower() == "yes"


async def list_decks(repo: Repository, args: argparse.Namespace) -> None:
    decks = await repo.get_all("decks")
    if not decks:
        print("No decks yet.")
        return
    for deck in decks:
        cards = await repo.cards_by_deck(deck.id)
        print(f"[{deck.id}] {deck.name} ({len(cards)} cards)")


async def rename_deck(repo: Repository, args: argparse.Namespace) -> None:
    deck = await repo.get("decks", args.deck_id)
    if deck is None:
        print(f"No deck with id {args.deck_id}.")
        return
    renamed = deck.model_copy(update={"name": args.name, "updated_at": utc_now()})
    if not await repo.update("decks", renamed):
        print(f"No deck with id {args.deck_id}.")
        return
    print(f"Renamed deck [{deck.id}] {deck.name} -> {args.name}")


async def delete_deck(repo: Repository, args: argparse.Namespace) -> None:
    deck = await repo.get("decks", args.deck_id)
    if deck is None:
        print(f"No deck with id {args.deck_id}.")
        return
    if not _confirm(f"Delete deck {deck.name} and all its cards?", args.yes):
        print("Cancelled. No changes made.")
        return

    cards = await repo.cards_by_deck(deck.id)
    for card in cards:
        await repo.delete("cards", card.id)
    await repo.delete("decks", deck.id)
    logger.info("Deleted deck %s with %d cards", deck.id, len(cards))
    print(f"Deleted deck [{deck.id}] {deck.name} and {len(cards)} card(s)")


async def list_cards(repo: Repository, args: argparse.Namespace) -> None:
    deck = await repo.get("decks", args.deck_id)
    if deck is None:
        print(f"No deck with id {args.deck_id}.")
        return
    cards = await repo.cards_by_deck(deck.id)
    if not cards:
        print(f"Deck {deck.name} has no cards.")
        return
    for card in cards:
        due = card.next_review_at.date().isoformat() if card.next_review_at else "new"
        print(f"[{card.id}] {card.front_text or '(image)'}  EF={card.ease_factor:.2f} next={due}")


async def edit_card(repo: Repository, args: argparse.Namespace) -> None:
    card = await repo.get("cards", args.card_id)
    if card is None:
        print(f"No card with id {args.card_id}.")
        return

    # Content only; scheduling state is untouched
    changes = {"updated_at": utc_now()}
    if args.front is not None:
        changes["front_text"] = args.front.strip()
    if args.back is not None:
        changes["back_text"] = args.back.strip()

    if not await repo.update("cards", card.rescheduled(**changes)):
        print(f"No card with id {args.card_id}.")
        return
    print(f"Updated card [{card.id}]")


async def delete_card(repo: Repository, args: argparse.Namespace) -> None:
    card = await repo.get("cards", args.card_id)
    if card is None:
        print(f"No card with id {args.card_id}.")
        return
    if not _confirm(f"Delete card {card.front_text!r}?", args.yes):
        print("Cancelled. No changes made.")
        return
    await repo.delete("cards", card.id)
    print(f"Deleted card [{card.id}]")


async def list_due(repo: Repository, args: argparse.Namespace) -> None:
    service = ReviewService(repo)
    ranked = await service.ranked_queue(utc_now())

    if not ranked:
        print("No cards due today.")
        return

    for scored in ranked[: args.limit] if args.limit else ranked:
        card = scored.card
        due = card.next_review_at.date().isoformat() if card.next_review_at else "new"
        print(
            f"[{card.id}] score={round(scored.priority_score * 100)} "
            f"(due {due}) n={card.repetitions} EF={card.ease_factor:.2f}\n"
            f"{card.front_text}\n"
        )


def _prompt_grade() -> Optional[int]:
    while True:
        raw = input("Grade 1-4 (1=forgot 2=hard 3=good 4=easy, q to quit): ").strip().lower()
        if raw == "q":
            return None
        if raw in {"1", "2", "3", "4"}:
            return int(raw)
        print("Invalid grade.")


async def review(repo: Repository, args: argparse.Namespace) -> None:
    service = ReviewService(repo)
    session = await start_session(service, utc_now())

    if is_finished(session):
        print("No cards due today.")
        return

    limit = args.limit or len(session.queue)
    while not is_finished(session) and session.position < limit:
        card = current_card(session)
        print(f"\nCard {session.position + 1} / {len(session.queue)}")
        print(card.front_text)

        if args.grade is None:
            input("(press Enter to show the answer)")
        session = reveal_answer(session)
        print(card.back_text)

        grade = args.grade if args.grade is not None else _prompt_grade()
        if grade is None:
            break
        session = await grade_current(service, session, grade, utc_now())
        print(f"Recorded: {GRADE_LABELS[grade]}")

    print(
        f"\nReviewed {session.reviewed} card(s), {session.correct} remembered"
        + (f", {session.skipped} skipped" if session.skipped else "")
        + "."
    )


async def stats(repo: Repository, args: argparse.Namespace) -> None:
    dashboard = await build_dashboard(repo, utc_now())
    print(f"Due today:        {dashboard.due_count}")
    print(f"Total cards:      {dashboard.total_cards}")
    print(f"Retention (7d):   {dashboard.retention_rate_7d}%")
    print(f"Forget rate:      {dashboard.forget_rate * 100:.1f}%")
    print(f"Struggling cards: {dashboard.struggling_cards}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="deepgalaxy", description="Spaced repetition scheduler")
    parser.add_argument("--database-url", help="SQLAlchemy URL (default: DATABASE_URL)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create tables")

    p_deck = sub.add_parser("add-deck", help="Create a deck")
    p_deck.add_argument("name")
    p_deck.set_defaults(func=add_deck)

    p_card = sub.add_parser("add-card", help="Add a card to a deck")
    p_card.add_argument("deck_id", type=int)
    p_card.add_argument("front")
    p_card.add_argument("back")
    p_card.set_defaults(func=add_card)

    p_decks = sub.add_parser("decks", help="List decks")
    p_decks.set_defaults(func=list_decks)

    p_rename = sub.add_parser("rename-deck", help="Rename a deck")
    p_rename.add_argument("deck_id", type=int)
    p_rename.add_argument("name")
    p_rename.set_defaults(func=rename_deck)

    p_del_deck = sub.add_parser("delete-deck", help="Delete a deck and all its cards")
    p_del_deck.add_argument("deck_id", type=int)
    p_del_deck.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    p_del_deck.set_defaults(func=delete_deck)

    p_cards = sub.add_parser("cards", help="List the cards of a deck")
    p_cards.add_argument("deck_id", type=int)
    p_cards.set_defaults(func=list_cards)

    p_edit = sub.add_parser("edit-card", help="Change a card's front or back text")
    p_edit.add_argument("card_id", type=int)
    p_edit.add_argument("--front")
    p_edit.add_argument("--back")
    p_edit.set_defaults(func=edit_card)

    p_del_card = sub.add_parser("delete-card", help="Delete a card")
    p_del_card.add_argument("card_id", type=int)
    p_del_card.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    p_del_card.set_defaults(func=delete_card)

    p_due = sub.add_parser("due", help="List due cards by priority")
    p_due.add_argument("--limit", type=int, default=0)
    p_due.set_defaults(func=list_due)

    p_review = sub.add_parser("review", help="Review due cards")
    p_review.add_argument("--grade", type=int, choices=[1, 2, 3, 4],
                          help="Apply this grade to every card without prompting")
    p_review.add_argument("--limit", type=int, default=0)
    p_review.set_defaults(func=review)

    p_stats = sub.add_parser("stats", help="Show dashboard statistics")
    p_stats.set_defaults(func=stats)

    return parser


def _run_command(args: argparse.Namespace) -> int:
    engine = get_engine(args.database_url)
    try:
        init_db(engine)
        if args.command == "init-db":
            print("[OK] Database ready")
            return 0
        asyncio.run(args.func(SqlRepository(engine), args))
    except SchedulerError as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"[ERROR] {exc}")
        return 1
    finally:
        engine.dispose()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    root_logger = logging.getLogger()
    saved_handlers, saved_level = root_logger.handlers[:], root_logger.level
    configure_logging()
    if args.verbose:
        root_logger.setLevel(logging.DEBUG)

    try:
        return _run_command(args)
    finally:
        # Leave the root logger as found
        root_logger.handlers = saved_handlers
        root_logger.setLevel(saved_level)


if __name__ == "__main__":
    raise SystemExit(main())
