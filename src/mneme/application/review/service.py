"""
Review Service: application layer orchestrator.

Applies rating submissions to persisted cards and answers the read-side
questions of a study session (what is due, what each rating would do, how
long the current streak is).

Writes happen inside one ReviewUnitOfWork per call, so a batch either lands
completely or not at all.
"""

import logging
import random
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from mneme.application.scheduler import Scheduler, utc_now
from mneme.application.stats.metrics_calculator import StudyMetricsCalculator
from mneme.domain import constants
from mneme.domain.errors import NotFoundError
from mneme.domain.review.models import (
    Card,
    RatingSubmission,
    ReviewHistoryEntry,
    ReviewStatus,
    StudyStreak,
)
from mneme.domain.review.ports import ReviewUnitOfWork
from mneme.domain.scheduling.models import CardStatus, Rating

from .formatting import format_interval

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Application service for submitting reviews and building study queues.

    Follows Dependency Inversion: depends on the ReviewUnitOfWork port, not on
    a concrete store.
    """

    def __init__(
        self,
        uow: ReviewUnitOfWork,
        scheduler: Scheduler | None = None,
        calculator: StudyMetricsCalculator | None = None,
        clock: Callable[[], datetime] = utc_now,
        rng: random.Random | None = None,
    ):
        """
        Args:
            uow: Atomic scope over the card and history repositories.
            scheduler: Scheduler to apply; uses default settings if not provided.
            calculator: Streak calculator; uses default if not provided.
            clock: Source of "now" for due checks and default review times.
            rng: Shuffle source for cram card selection.
        """
        self._uow = uow
        self._scheduler = scheduler or Scheduler()
        self._calc = calculator or StudyMetricsCalculator()
        self._clock = clock
        self._rng = rng or random.Random()

    # ---------------------------------------------------------------------------
    # Submissions
    # ---------------------------------------------------------------------------

    async def submit_reviews(
        self,
        ratings: Iterable[RatingSubmission],
        reviewed_at: datetime | None = None,
    ) -> list[ReviewHistoryEntry]:
        """
        Schedule each rated card and record the outcome.

        Ratings are applied in input order; a card rated twice in one batch
        sees its first update. If any card is missing the whole batch is
        rolled back.

        Args:
            ratings: Card id / rating pairs.
            reviewed_at: Review time for every entry; defaults to now.

        Returns:
            One history entry per rating, in input order.

        Raises:
            NotFoundError: A referenced card does not exist.
            InvalidRatingError: A rating is not Again/Hard/Good/Easy.
        """
        submissions = self._normalize(ratings)
        if not submissions:
            return []

        at = _as_utc(reviewed_at or self._clock())
        results: list[ReviewHistoryEntry] = []

        async with self._uow as uow:
            for submission in submissions:
                card = await self._require_card(submission.card_id)
                previous = card.state
                next_state = self._scheduler.calculate_next(previous, submission.quality, now=at)

                card.state = next_state
                await uow.cards.save(card)

                repetitions = await uow.history.count_by_card(card.id) + 1
                entry = await uow.history.append(
                    ReviewHistoryEntry(
                        card_id=card.id,
                        quality=submission.quality,
                        repetitions=repetitions,
                        interval=next_state.interval,
                        e_factor=next_state.ease_factor,
                        next_review_date=next_state.next_review_date,
                        reviewed_at=at,
                        previous_status=previous.status,
                        new_status=next_state.status,
                    )
                )
                logger.debug(
                    f"Card {card.id}: {previous.status.value} -> {next_state.status.value} "
                    f"({submission.quality.value}, interval={next_state.interval})"
                )
                results.append(entry)

        logger.info(f"Submitted {len(results)} review(s)")
        return results

    async def submit_cram_reviews(
        self,
        ratings: Iterable[RatingSubmission],
        reviewed_at: datetime | None = None,
    ) -> list[ReviewHistoryEntry]:
        """
        Record practice reviews without touching the live schedule.

        The scheduler is not consulted and cards are not written; each entry
        copies the card's current interval, ease and due date.

        Raises:
            NotFoundError: A referenced card does not exist.
        """
        submissions = self._normalize(ratings)
        if not submissions:
            return []

        at = _as_utc(reviewed_at or self._clock())
        results: list[ReviewHistoryEntry] = []

        async with self._uow as uow:
            for submission in submissions:
                card = await self._require_card(submission.card_id)
                state = card.state
                repetitions = await uow.history.count_by_card(card.id) + 1
                entry = await uow.history.append(
                    ReviewHistoryEntry(
                        card_id=card.id,
                        quality=submission.quality,
                        repetitions=repetitions,
                        interval=state.interval,
                        e_factor=state.ease_factor,
                        next_review_date=state.next_review_date,
                        reviewed_at=at,
                        previous_status=state.status,
                        new_status=state.status,
                    )
                )
                results.append(entry)

        logger.info(f"Recorded {len(results)} cram review(s)")
        return results

    # ---------------------------------------------------------------------------
    # Study queues
    # ---------------------------------------------------------------------------

    async def get_due_reviews(self, deck_id: int, limit: int | None = None) -> list[Card]:
        """
        Cards of the deck that should be studied now.

        New cards come first, then scheduled cards by ascending due date.

        Raises:
            NotFoundError: The deck does not exist.
        """
        await self._require_deck(deck_id)
        now = self._clock()

        due = [card for card in await self._uow.cards.list_by_deck(deck_id) if _is_due(card, now)]
        due.sort(key=_due_order)
        if limit is not None:
            due = due[: max(limit, 0)]

        logger.debug(f"Deck {deck_id}: {len(due)} due card(s)")
        return due

    async def get_cram_cards(
        self, deck_id: int, limit: int = constants.DEFAULT_CRAM_LIMIT
    ) -> list[Card]:
        """
        Random selection of the deck's cards regardless of due date.

        Raises:
            NotFoundError: The deck does not exist.
        """
        await self._require_deck(deck_id)
        cards = await self._uow.cards.list_by_deck(deck_id)
        return self._rng.sample(cards, min(max(limit, 0), len(cards)))

    async def get_review_preview(self, card_id: int) -> dict[str, str]:
        """
        What each rating would schedule, as "<n> min" / "1 day" / "<n> days".

        Computed without interval jitter on a throwaway copy of the state, so
        repeated calls agree and nothing is persisted.

        Raises:
            NotFoundError: The card does not exist.
        """
        card = await self._require_card(card_id)
        now = self._clock()
        return {
            rating.value: format_interval(
                self._scheduler.calculate_next(card.state, rating, now=now, fuzz=False)
            )
            for rating in Rating
        }

    # ---------------------------------------------------------------------------
    # History queries
    # ---------------------------------------------------------------------------

    async def get_consecutive_study_days(self, deck_id: int) -> StudyStreak:
        """
        Current study streak for the deck.

        Raises:
            NotFoundError: The deck does not exist.
        """
        await self._require_deck(deck_id)
        entries = await self._uow.history.list_by_deck(deck_id)
        today = self._clock().date()
        return self._calc.study_streak((e.reviewed_at for e in entries), today)

    async def get_latest_review(self, card_id: int) -> ReviewHistoryEntry | None:
        return await self._uow.history.latest_for_card(card_id)

    async def get_review_status(self, card_id: int) -> ReviewStatus:
        """
        Raises:
            NotFoundError: The card does not exist.
        """
        card = await self._require_card(card_id)
        latest = await self._uow.history.latest_for_card(card.id)
        return ReviewStatus(
            card_id=card.id,
            last_reviewed_at=latest.reviewed_at if latest else None,
            next_review_date=latest.next_review_date if latest else None,
            has_been_reviewed=latest is not None,
        )

    async def update_review(self, entry: ReviewHistoryEntry) -> ReviewHistoryEntry:
        """
        Replace a stored history entry (maintenance only).

        Raises:
            NotFoundError: No entry has this id.
        """
        async with self._uow as uow:
            updated = await uow.history.update(entry)
            if updated is None:
                logger.warning(f"Review {entry.id} not found")
                raise NotFoundError("Review", entry.id if entry.id is not None else -1)
        return updated

    async def remove_reviews_for_card(self, card_id: int) -> int:
        """Delete all history of a card (cascade cleanup). Returns the count removed."""
        async with self._uow as uow:
            removed = await uow.history.delete_by_card(card_id)
        logger.info(f"Removed {removed} review(s) of card {card_id}")
        return removed

    # ---------------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------------

    def _normalize(self, ratings: Iterable[RatingSubmission]) -> list[RatingSubmission]:
        # Parse up front so a bad rating fails before any write.
        return [
            RatingSubmission(card_id=r.card_id, quality=Rating.parse(r.quality)) for r in ratings
        ]

    async def _require_card(self, card_id: int) -> Card:
        card = await self._uow.cards.get(card_id)
        if card is None:
            logger.warning(f"Card {card_id} not found")
            raise NotFoundError("Card", card_id)
        return card

    async def _require_deck(self, deck_id: int) -> None:
        if not await self._uow.cards.deck_exists(deck_id):
            logger.warning(f"Deck {deck_id} not found")
            raise NotFoundError("Deck", deck_id)


def _as_utc(at: datetime) -> datetime:
    # Naive review times are UTC, as in the CLI and the YAML store.
    return at if at.tzinfo else at.replace(tzinfo=timezone.utc)


def _is_due(card: Card, now: datetime) -> bool:
    state = card.state
    if state.status is CardStatus.NEW:
        return True
    return state.next_review_date is not None and state.next_review_date <= now


def _due_order(card: Card) -> tuple[int, float, int]:
    state = card.state
    if state.status is CardStatus.NEW:
        return (0, 0.0, card.id)
    return (1, state.next_review_date.timestamp(), card.id)
