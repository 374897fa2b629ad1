"""
Domain models for review submissions and history.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from mneme.domain.scheduling.models import CardStatus, Rating, SchedulingState


@dataclass
class Card:
    """
    A card as seen by the review subsystem.

    The store owns the full record; the review service only replaces `state`.
    """

    id: int
    deck_id: int
    state: SchedulingState = field(default_factory=SchedulingState.new)

    # Content (for display purposes)
    front: str | None = None
    back: str | None = None


@dataclass(frozen=True)
class RatingSubmission:
    """One `{cardId, quality}` pair of a submission batch."""

    card_id: int
    quality: Rating


@dataclass(frozen=True)
class ReviewHistoryEntry:
    """
    A single review log row, created once per submitted rating.

    Attributes:
        card_id: The card that was reviewed.
        quality: Rating the learner gave.
        repetitions: Ordinal of this review for the card (1 for the first).
        interval: Interval after the review (minutes or days, per new_status).
        e_factor: Ease factor after the review.
        next_review_date: Due time after the review.
        reviewed_at: When the review happened.
        previous_status: Status before the review.
        new_status: Status after the review (equal to previous_status in cram mode).
        id: Assigned by the store on append.
    """

    card_id: int
    quality: Rating
    repetitions: int
    interval: int
    e_factor: float
    next_review_date: datetime | None
    reviewed_at: datetime
    previous_status: CardStatus
    new_status: CardStatus
    id: int | None = None


@dataclass(frozen=True)
class StudyStreak:
    consecutive_days: int
    streak_start_date: date | None
    last_study_date: date | None


@dataclass(frozen=True)
class ReviewStatus:
    """Latest-review summary for a card."""

    card_id: int
    last_reviewed_at: datetime | None
    next_review_date: datetime | None
    has_been_reviewed: bool
