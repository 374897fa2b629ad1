"""
Domain models for card scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from mneme.domain import constants
from mneme.domain.errors import InvalidRatingError


class CardStatus(str, Enum):
    """Queue a card currently sits in. Closed set: every transition table covers all four."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


class Rating(str, Enum):
    """Recall quality supplied by the learner."""

    AGAIN = "Again"
    HARD = "Hard"
    GOOD = "Good"
    EASY = "Easy"

    @classmethod
    def parse(cls, value: "Rating | str") -> "Rating":
        """
        Resolve a rating from its enum member or its name (case-insensitive).

        Raises:
            InvalidRatingError: for anything that is not one of the four ratings.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for rating in cls:
                if rating.value.lower() == value.strip().lower():
                    return rating
        raise InvalidRatingError(value)

    @property
    def is_correct(self) -> bool:
        return self is not Rating.AGAIN


@dataclass(frozen=True)
class SchedulingState:
    """
    Scheduling fields of a card.

    Attributes:
        status: Current queue.
        step_index: Index into the learning or relearning steps.
        ease_factor: Multiplier for review interval growth.
        interval: Minutes while learning/relearning, days while in review, 0 when new.
        next_review_date: UTC due time, None until the card is first scheduled.
    """

    status: CardStatus
    step_index: int
    ease_factor: float
    interval: int
    next_review_date: datetime | None = None

    @classmethod
    def new(cls, settings: "SchedulerSettings | None" = None) -> "SchedulingState":
        """Creation defaults for a card that has never been rated."""
        starting_ease = settings.starting_ease if settings else constants.DEFAULT_STARTING_EASE
        return cls(
            status=CardStatus.NEW,
            step_index=0,
            ease_factor=starting_ease,
            interval=0,
            next_review_date=None,
        )


@dataclass(frozen=True)
class SchedulerSettings:
    """
    Immutable scheduler configuration.

    Step sequences are in minutes, intervals in days.
    """

    learning_steps: tuple[int, ...] = constants.DEFAULT_LEARNING_STEPS
    relearning_steps: tuple[int, ...] = constants.DEFAULT_RELEARNING_STEPS
    graduating_interval: int = constants.DEFAULT_GRADUATING_INTERVAL
    easy_interval: int = constants.DEFAULT_EASY_INTERVAL
    starting_ease: float = constants.DEFAULT_STARTING_EASE
    min_ease: float = constants.DEFAULT_MIN_EASE
    hard_interval_factor: float = constants.DEFAULT_HARD_INTERVAL_FACTOR
    easy_bonus: float = constants.DEFAULT_EASY_BONUS
    use_fuzz: bool = constants.DEFAULT_USE_FUZZ
    interval_modifier: float = constants.DEFAULT_INTERVAL_MODIFIER

    def __post_init__(self):
        # Accept lists from config layers while keeping the value hashable.
        object.__setattr__(self, "learning_steps", tuple(self.learning_steps))
        object.__setattr__(self, "relearning_steps", tuple(self.relearning_steps))

        for name in ("learning_steps", "relearning_steps"):
            steps = getattr(self, name)
            if not steps:
                raise ValueError(f"{name} must contain at least one step")
            if any(step <= 0 for step in steps):
                raise ValueError(f"{name} must contain only positive minutes")

        if self.graduating_interval < 1 or self.easy_interval < 1:
            raise ValueError("graduating_interval and easy_interval must be at least 1 day")
        if self.min_ease <= 0:
            raise ValueError("min_ease must be positive")
        if self.starting_ease < self.min_ease:
            raise ValueError("starting_ease must not be below min_ease")
        for name in ("hard_interval_factor", "easy_bonus", "interval_modifier"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
