import os
from datetime import datetime, timedelta, timezone

import pytest

from mneme.application.scheduler import Scheduler
from mneme.domain.review.models import Card
from mneme.domain.scheduling.models import CardStatus, SchedulerSettings, SchedulingState
from mneme.infrastructure.adapters.memory_store import (
    InMemoryCardRepository,
    InMemoryUnitOfWork,
)

NOW = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)


def make_state(
    status: CardStatus = CardStatus.NEW,
    step_index: int = 0,
    ease_factor: float = 2.5,
    interval: int = 0,
    next_review_date: datetime | None = None,
) -> SchedulingState:
    return SchedulingState(
        status=status,
        step_index=step_index,
        ease_factor=ease_factor,
        interval=interval,
        next_review_date=next_review_date,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture(name="make_state")
def make_state_fixture():
    return make_state


@pytest.fixture
def settings():
    """Default settings with fuzz off so intervals are exact."""
    return SchedulerSettings(use_fuzz=False)


@pytest.fixture
def scheduler(settings):
    return Scheduler(settings)


@pytest.fixture
def deck_cards():
    """
    Deck 1:
        1  new
        2  review, 10 days, due yesterday
        3  learning step 1, due in 5 minutes
        4  review, 3 days, due two days ago
    Deck 2:
        10 new
    Deck 3 exists but is empty.
    """
    return [
        Card(id=1, deck_id=1, front="uno"),
        Card(
            id=2,
            deck_id=1,
            state=make_state(CardStatus.REVIEW, 0, 2.5, 10, NOW - timedelta(days=1)),
        ),
        Card(
            id=3,
            deck_id=1,
            state=make_state(CardStatus.LEARNING, 1, 2.5, 10, NOW + timedelta(minutes=5)),
        ),
        Card(
            id=4,
            deck_id=1,
            state=make_state(CardStatus.REVIEW, 0, 2.3, 3, NOW - timedelta(days=2)),
        ),
        Card(id=10, deck_id=2),
    ]


@pytest.fixture
def uow(deck_cards):
    return InMemoryUnitOfWork(InMemoryCardRepository(deck_cards, decks=[1, 2, 3]))


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config files
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("MNEME_"):
            monkeypatch.delenv(key)
    return home
