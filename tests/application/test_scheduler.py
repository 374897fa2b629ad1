import random
from datetime import timedelta

import pytest

from mneme.application.scheduler import Scheduler
from mneme.domain.errors import InvalidRatingError
from mneme.domain.scheduling.models import CardStatus, Rating, SchedulerSettings, SchedulingState

# --- New cards ---


def test_new_good_enters_second_learning_step(scheduler, make_state, now):
    result = scheduler.calculate_next(make_state(), Rating.GOOD, now=now)

    assert result.status == CardStatus.LEARNING
    assert result.step_index == 1
    assert result.interval == 10
    assert result.ease_factor == 2.5
    assert result.next_review_date == now + timedelta(minutes=10)


def test_new_easy_graduates_with_easy_interval(scheduler, make_state, now):
    result = scheduler.calculate_next(make_state(), Rating.EASY, now=now)

    assert result.status == CardStatus.REVIEW
    assert result.step_index == 0
    assert result.interval == 4
    assert result.next_review_date == now + timedelta(days=4)


@pytest.mark.parametrize("rating", [Rating.AGAIN, Rating.HARD])
def test_new_again_or_hard_starts_first_step(scheduler, make_state, now, rating):
    result = scheduler.calculate_next(make_state(), rating, now=now)

    assert result.status == CardStatus.LEARNING
    assert result.step_index == 0
    assert result.interval == 1
    assert result.next_review_date == now + timedelta(minutes=1)


def test_new_good_with_single_step_graduates(make_state, now):
    scheduler = Scheduler(SchedulerSettings(learning_steps=(5,), use_fuzz=False))
    result = scheduler.calculate_next(make_state(), Rating.GOOD, now=now)

    assert result.status == CardStatus.REVIEW
    assert result.interval == 1


# --- Learning ---


def test_learning_good_on_last_step_graduates(scheduler, make_state, now):
    card = make_state(CardStatus.LEARNING, step_index=1, interval=10)
    result = scheduler.calculate_next(card, Rating.GOOD, now=now)

    assert result.status == CardStatus.REVIEW
    assert result.step_index == 0
    assert result.interval == 1
    assert result.next_review_date == now + timedelta(days=1)


def test_learning_hard_repeats_current_step(scheduler, make_state, now):
    card = make_state(CardStatus.LEARNING, step_index=1, interval=10)
    result = scheduler.calculate_next(card, Rating.HARD, now=now)

    assert result.status == CardStatus.LEARNING
    assert result.step_index == 1
    assert result.interval == 10


def test_learning_again_resets_to_first_step(scheduler, make_state, now):
    card = make_state(CardStatus.LEARNING, step_index=1, interval=10)
    result = scheduler.calculate_next(card, Rating.AGAIN, now=now)

    assert result.status == CardStatus.LEARNING
    assert result.step_index == 0
    assert result.interval == 1


def test_learning_step_index_beyond_steps_graduates_on_good(scheduler, make_state, now):
    card = make_state(CardStatus.LEARNING, step_index=7, interval=10)
    result = scheduler.calculate_next(card, Rating.GOOD, now=now)

    assert result.status == CardStatus.REVIEW
    assert result.interval == 1


def test_learning_step_index_beyond_steps_repeats_last_step_on_hard(scheduler, make_state, now):
    card = make_state(CardStatus.LEARNING, step_index=7, interval=10)
    result = scheduler.calculate_next(card, Rating.HARD, now=now)

    assert result.status == CardStatus.LEARNING
    assert result.step_index == 1
    assert result.interval == 10


# --- Review ---


@pytest.mark.parametrize(
    "rating, status, interval, ease",
    [
        (Rating.AGAIN, CardStatus.RELEARNING, 10, 2.3),
        (Rating.HARD, CardStatus.REVIEW, 12, 2.35),
        (Rating.GOOD, CardStatus.REVIEW, 25, 2.5),
        (Rating.EASY, CardStatus.REVIEW, 32, 2.65),
    ],
)
def test_review_transitions(scheduler, make_state, now, rating, status, interval, ease):
    card = make_state(CardStatus.REVIEW, interval=10)
    result = scheduler.calculate_next(card, rating, now=now)

    assert result.status == status
    assert result.step_index == 0
    assert result.interval == interval
    assert result.ease_factor == pytest.approx(ease)


def test_review_again_due_in_relearning_minutes(scheduler, make_state, now):
    card = make_state(CardStatus.REVIEW, interval=10)
    result = scheduler.calculate_next(card, Rating.AGAIN, now=now)

    assert result.next_review_date == now + timedelta(minutes=10)


def test_review_good_long_interval_is_floored(scheduler, make_state, now):
    card = make_state(CardStatus.REVIEW, interval=365)
    result = scheduler.calculate_next(card, Rating.GOOD, now=now)

    assert result.interval == 912
    assert result.next_review_date == now + timedelta(days=912)


@pytest.mark.parametrize("interval", [0, -5])
def test_review_interval_never_below_one(scheduler, make_state, now, interval):
    card = make_state(CardStatus.REVIEW, interval=interval)
    result = scheduler.calculate_next(card, Rating.GOOD, now=now)

    assert result.interval >= 1


def test_interval_modifier_scales_growth(make_state, now):
    scheduler = Scheduler(SchedulerSettings(interval_modifier=0.5, use_fuzz=False))
    card = make_state(CardStatus.REVIEW, interval=10)

    assert scheduler.calculate_next(card, Rating.GOOD, now=now).interval == 12


def test_ease_never_drops_below_minimum(scheduler, make_state, now):
    card = make_state(CardStatus.REVIEW, ease_factor=1.3, interval=10)

    again = scheduler.calculate_next(card, Rating.AGAIN, now=now)
    hard = scheduler.calculate_next(card, Rating.HARD, now=now)

    assert again.ease_factor == 1.3
    assert hard.ease_factor == 1.3


def test_repeated_lapses_clamp_at_minimum(scheduler, make_state, now):
    card = make_state(CardStatus.REVIEW, ease_factor=2.5, interval=10)
    for _ in range(10):
        card = scheduler.calculate_next(card, Rating.AGAIN, now=now)
        card = scheduler.calculate_next(card, Rating.GOOD, now=now)

    assert card.ease_factor == 1.3


# --- Relearning ---


def test_relearning_good_graduates_past_last_step(scheduler, make_state, now):
    card = make_state(CardStatus.RELEARNING, ease_factor=2.3, interval=10)
    result = scheduler.calculate_next(card, Rating.GOOD, now=now)

    assert result.status == CardStatus.REVIEW
    assert result.interval == 1
    assert result.ease_factor == 2.3


def test_relearning_easy_uses_easy_interval(scheduler, make_state, now):
    card = make_state(CardStatus.RELEARNING, interval=10)
    result = scheduler.calculate_next(card, Rating.EASY, now=now)

    assert result.status == CardStatus.REVIEW
    assert result.interval == 4


def test_relearning_hard_stays(scheduler, make_state, now):
    card = make_state(CardStatus.RELEARNING, interval=10)
    result = scheduler.calculate_next(card, Rating.HARD, now=now)

    assert result.status == CardStatus.RELEARNING
    assert result.interval == 10
    assert result.next_review_date == now + timedelta(minutes=10)


# --- Invariants ---


@pytest.mark.parametrize("status", list(CardStatus))
@pytest.mark.parametrize("rating", list(Rating))
def test_output_invariants(scheduler, make_state, now, status, rating):
    card = make_state(status, step_index=1, ease_factor=1.35, interval=2)
    result = scheduler.calculate_next(card, rating, now=now)

    assert result.status != CardStatus.NEW
    assert result.interval >= 1
    assert result.ease_factor >= 1.3
    assert result.next_review_date > now
    if result.status == CardStatus.REVIEW:
        assert result.step_index == 0


def test_calculate_next_does_not_mutate_input(scheduler, make_state, now):
    card = make_state(CardStatus.REVIEW, interval=10, next_review_date=now)
    before = SchedulingState(**card.__dict__)

    scheduler.calculate_next(card, Rating.EASY, now=now)

    assert card == before


def test_string_ratings_are_accepted(scheduler, make_state, now):
    result = scheduler.calculate_next(make_state(), "good", now=now)
    assert result.step_index == 1


@pytest.mark.parametrize("bad", ["Perfect", "", 3, None])
def test_invalid_rating_raises(scheduler, make_state, now, bad):
    with pytest.raises(InvalidRatingError):
        scheduler.calculate_next(make_state(), bad, now=now)


def test_unknown_status_raises(scheduler, make_state, now):
    card = make_state(status="suspended")
    with pytest.raises(ValueError):
        scheduler.calculate_next(card, Rating.GOOD, now=now)


def test_now_defaults_to_current_time(scheduler, make_state):
    result = scheduler.calculate_next(make_state(), Rating.GOOD)
    assert result.next_review_date is not None
    assert result.next_review_date.tzinfo is not None


# --- Fuzz ---


def test_fuzz_stays_within_five_percent(make_state, now):
    card = make_state(CardStatus.REVIEW, interval=10)
    for seed in range(50):
        scheduler = Scheduler(SchedulerSettings(), rng=random.Random(seed))
        result = scheduler.calculate_next(card, Rating.GOOD, now=now)

        assert 24 <= result.interval <= 26
        assert result.next_review_date == now + timedelta(days=result.interval)


def test_fuzz_is_reproducible_with_seed(make_state, now):
    card = make_state(CardStatus.REVIEW, interval=100)
    first = Scheduler(rng=random.Random(7)).calculate_next(card, Rating.GOOD, now=now)
    second = Scheduler(rng=random.Random(7)).calculate_next(card, Rating.GOOD, now=now)

    assert first == second


def test_short_intervals_are_not_fuzzed(make_state, now):
    card = make_state(CardStatus.LEARNING, step_index=1, interval=10)
    for seed in range(20):
        scheduler = Scheduler(rng=random.Random(seed))
        assert scheduler.calculate_next(card, Rating.GOOD, now=now).interval == 1


@pytest.mark.parametrize(
    ("ease", "base", "may_vary"),
    [
        (2.5, 2, False),
        (2.9, 2, False),
        (3.0, 3, True),
    ],
)
def test_review_fuzz_starts_at_three_days(make_state, now, ease, base, may_vary):
    card = make_state(CardStatus.REVIEW, ease_factor=ease, interval=1)
    seen = {
        Scheduler(rng=random.Random(seed)).calculate_next(card, Rating.GOOD, now=now).interval
        for seed in range(50)
    }

    if may_vary:
        assert seen <= {base - 1, base, base + 1}
        assert len(seen) > 1
    else:
        assert seen == {base}

def test_fuzz_can_be_skipped_per_call(make_state, now):
    card = make_state(CardStatus.REVIEW, interval=10)
    scheduler = Scheduler(rng=random.Random(3))

    assert scheduler.calculate_next(card, Rating.GOOD, now=now, fuzz=False).interval == 25


# --- Settings ---


@pytest.mark.parametrize(
    "kwargs",
    [
        {"learning_steps": ()},
        {"relearning_steps": (0,)},
        {"graduating_interval": 0},
        {"min_ease": 0},
        {"starting_ease": 1.2},
        {"easy_bonus": -1.0},
    ],
)
def test_invalid_settings_rejected(kwargs):
    with pytest.raises(ValueError):
        SchedulerSettings(**kwargs)


def test_settings_accept_lists():
    settings = SchedulerSettings(learning_steps=[1, 5, 20])
    assert settings.learning_steps == (1, 5, 20)
