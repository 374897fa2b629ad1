"""
SM-2 style scheduler for flashcards.

This is a pure computation module with no I/O: given a card's scheduling
state and a rating it returns the next state and never mutates its input.

Transitions are looked up in an explicit status -> handler table:

    new         Again/Hard/Good follow the learning rules from step 0, Easy graduates
    learning    walk learning_steps, graduate past the last step or on Easy
    review      grow the interval by ease, lapse to relearning on Again
    relearning  walk relearning_steps, graduate like learning
"""

import math
import random
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from mneme.domain import constants
from mneme.domain.scheduling.models import (
    CardStatus,
    Rating,
    SchedulerSettings,
    SchedulingState,
)


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class _Transition(NamedTuple):
    status: CardStatus
    step_index: int
    ease_factor: float
    interval: int


class Scheduler:
    """
    Computes the next scheduling state for a (state, rating) pair.

    Stateless apart from its immutable settings and jitter source, so one
    instance can be shared across threads and across preview/submit calls.
    """

    def __init__(
        self,
        settings: SchedulerSettings | None = None,
        rng: random.Random | None = None,
    ):
        """
        Args:
            settings: Scheduler configuration; defaults are used if not provided.
            rng: Jitter source for interval fuzz. Inject a seeded instance for reproducible runs.
        """
        self.settings = settings or SchedulerSettings()
        self._rng = rng or random.Random()

    def calculate_next(
        self,
        card: SchedulingState,
        rating: Rating | str,
        now: datetime | None = None,
        fuzz: bool = True,
    ) -> SchedulingState:
        """
        Return the state that follows `card` after `rating`.

        Args:
            card: Current scheduling state (left untouched).
            rating: Learner rating. Unknown values raise InvalidRatingError.
            now: Clock used to project the due date; defaults to the current UTC time.
            fuzz: Set to False to skip interval jitter (previews).

        Returns:
            A new SchedulingState. Its status is never `new`, its interval is at
            least 1 and its ease factor is never below `min_ease`.
        """
        rating = Rating.parse(rating)
        handler = _TRANSITIONS.get(card.status)
        if handler is None:
            raise ValueError(f"Unsupported card status {card.status!r}")

        current = now or utc_now()
        result = handler(self, card, rating)
        ease = max(self.settings.min_ease, round(result.ease_factor, constants.EASE_PRECISION))

        if result.status is CardStatus.REVIEW:
            interval = self._fuzz(result.interval) if fuzz else result.interval
            due = current + timedelta(days=interval)
        else:
            interval = result.interval
            due = current + timedelta(minutes=interval)

        return SchedulingState(
            status=result.status,
            step_index=result.step_index,
            ease_factor=ease,
            interval=interval,
            next_review_date=due,
        )

    # ---------------------------------------------------------------------------
    # Per-status handlers
    # ---------------------------------------------------------------------------

    def _from_new(self, card: SchedulingState, rating: Rating) -> _Transition:
        # A new card enters learning at step 0 and the rating applies from there.
        return self._walk_steps(
            CardStatus.LEARNING,
            self.settings.learning_steps,
            0,
            card.ease_factor,
            rating,
        )

    def _from_learning(self, card: SchedulingState, rating: Rating) -> _Transition:
        return self._walk_steps(
            CardStatus.LEARNING,
            self.settings.learning_steps,
            card.step_index,
            card.ease_factor,
            rating,
        )

    def _from_relearning(self, card: SchedulingState, rating: Rating) -> _Transition:
        return self._walk_steps(
            CardStatus.RELEARNING,
            self.settings.relearning_steps,
            card.step_index,
            card.ease_factor,
            rating,
        )

    def _from_review(self, card: SchedulingState, rating: Rating) -> _Transition:
        s = self.settings
        ease = card.ease_factor

        if rating is Rating.AGAIN:
            return _Transition(
                CardStatus.RELEARNING,
                0,
                max(s.min_ease, ease - constants.EASE_PENALTY_AGAIN),
                s.relearning_steps[0],
            )
        if rating is Rating.HARD:
            return _Transition(
                CardStatus.REVIEW,
                0,
                max(s.min_ease, ease - constants.EASE_PENALTY_HARD),
                _grow(card.interval * s.hard_interval_factor * s.interval_modifier),
            )
        if rating is Rating.GOOD:
            return _Transition(
                CardStatus.REVIEW,
                0,
                ease,
                _grow(card.interval * ease * s.interval_modifier),
            )
        return _Transition(
            CardStatus.REVIEW,
            0,
            ease + constants.EASE_BONUS_EASY,
            _grow(card.interval * ease * s.easy_bonus * s.interval_modifier),
        )

    def _walk_steps(
        self,
        status: CardStatus,
        steps: tuple[int, ...],
        step_index: int,
        ease: float,
        rating: Rating,
    ) -> _Transition:
        """Shared rules for learning and relearning."""
        s = self.settings
        step_index = max(0, step_index)

        if rating is Rating.AGAIN:
            return _Transition(status, 0, ease, steps[0])
        if rating is Rating.HARD:
            # An index past the end repeats the last configured step.
            current = min(step_index, len(steps) - 1)
            return _Transition(status, current, ease, steps[current])
        if rating is Rating.GOOD:
            advanced = step_index + 1
            if advanced >= len(steps):
                return _Transition(CardStatus.REVIEW, 0, ease, s.graduating_interval)
            return _Transition(status, advanced, ease, steps[advanced])
        return _Transition(CardStatus.REVIEW, 0, ease, s.easy_interval)

    def _fuzz(self, interval: int) -> int:
        """Jitter review intervals of FUZZ_MIN_INTERVAL days or more by a few percent."""
        if not self.settings.use_fuzz or interval < constants.FUZZ_MIN_INTERVAL:
            return interval
        spread = max(1, round(interval * constants.FUZZ_RATIO))
        return self._rng.randint(interval - spread, interval + spread)


def _grow(value: float) -> int:
    # Absorb float error before truncating (2.3 * 10 must give 23, not 22).
    return max(1, math.floor(round(value, 6)))


_TRANSITIONS: dict[CardStatus, Callable[[Scheduler, SchedulingState, Rating], _Transition]] = {
    CardStatus.NEW: Scheduler._from_new,
    CardStatus.LEARNING: Scheduler._from_learning,
    CardStatus.REVIEW: Scheduler._from_review,
    CardStatus.RELEARNING: Scheduler._from_relearning,
}

_missing = set(CardStatus) - set(_TRANSITIONS)
if _missing:
    raise RuntimeError(f"No scheduler transition for statuses: {sorted(s.value for s in _missing)}")
