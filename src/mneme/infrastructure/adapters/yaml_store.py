"""
YAML state file: infrastructure adapter.

Keeps decks, cards and review history in one YAML document:

    decks: [1]
    cards:
      - id: 1
        deck_id: 1
        front: hola
        status: review        # scheduling fields are optional
        step_index: 0
        ease_factor: 2.5
        interval: 10
        next_review_date: '2024-01-11T09:00:00+00:00'
    reviews:
      - id: 1
        card_id: 1
        quality: Good
        ...

The file is read once when the unit of work is created and rewritten only
on commit, so a failed batch leaves it untouched.
"""

import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from mneme.domain.errors import StoreError
from mneme.domain.review.models import Card, ReviewHistoryEntry
from mneme.domain.scheduling.models import (
    CardStatus,
    Rating,
    SchedulerSettings,
    SchedulingState,
)

from .memory_store import (
    InMemoryCardRepository,
    InMemoryReviewHistoryRepository,
    InMemoryUnitOfWork,
)

logger = logging.getLogger(__name__)


class YamlUnitOfWork(InMemoryUnitOfWork):
    """In-memory unit of work that persists to a YAML file on commit."""

    def __init__(self, path: Path, settings: SchedulerSettings | None = None):
        self.path = Path(path)
        self._defaults = SchedulingState.new(settings)
        cards, history = self._load()
        super().__init__(cards, history)

    async def commit(self) -> None:
        try:
            self._write()
        except StoreError:
            await self.rollback()
            raise
        await super().commit()

    # ---------------------------------------------------------------------------
    # Serialization
    # ---------------------------------------------------------------------------

    def _load(self) -> tuple[InMemoryCardRepository, InMemoryReviewHistoryRepository]:
        if not self.path.exists():
            logger.info(f"State file {self.path} does not exist yet; starting empty")
            cards = InMemoryCardRepository()
            return cards, InMemoryReviewHistoryRepository(cards)

        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise StoreError(f"Invalid state file {self.path}: {e}") from e
        if not isinstance(raw, dict):
            raise StoreError(f"Invalid state file {self.path}: expected a mapping")

        try:
            cards = InMemoryCardRepository(
                cards=[self._card_from_dict(c) for c in raw.get("cards") or []],
                decks=[int(d) for d in raw.get("decks") or []],
            )
            history = InMemoryReviewHistoryRepository(
                cards, [_entry_from_dict(r) for r in raw.get("reviews") or []]
            )
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Invalid state file {self.path}: {e}") from e

        logger.debug(
            f"Loaded {len(cards.all_cards())} cards and "
            f"{len(history.all_entries())} reviews from {self.path}"
        )
        return cards, history

    def _write(self) -> None:
        data = {
            "decks": self.cards.all_decks(),
            "cards": [_card_to_dict(c) for c in self.cards.all_cards()],
            "reviews": [_entry_to_dict(e) for e in self.history.all_entries()],
        }
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        except OSError as e:
            raise StoreError(f"Could not write state file {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, self.path)
        except OSError as e:
            Path(tmp).unlink(missing_ok=True)
            raise StoreError(f"Could not write state file {self.path}: {e}") from e

    def _card_from_dict(self, d: dict[str, Any]) -> Card:
        defaults = self._defaults
        state = SchedulingState(
            status=CardStatus(d.get("status", defaults.status.value)),
            step_index=int(d.get("step_index", defaults.step_index)),
            ease_factor=float(d.get("ease_factor", defaults.ease_factor)),
            interval=int(d.get("interval", defaults.interval)),
            next_review_date=_parse_dt(d.get("next_review_date")),
        )
        return Card(
            id=int(d["id"]),
            deck_id=int(d["deck_id"]),
            state=state,
            front=d.get("front"),
            back=d.get("back"),
        )


def _card_to_dict(card: Card) -> dict[str, Any]:
    s = card.state
    d: dict[str, Any] = {"id": card.id, "deck_id": card.deck_id}
    if card.front is not None:
        d["front"] = card.front
    if card.back is not None:
        d["back"] = card.back
    d.update(
        status=s.status.value,
        step_index=s.step_index,
        ease_factor=s.ease_factor,
        interval=s.interval,
        next_review_date=_format_dt(s.next_review_date),
    )
    return d


def _entry_from_dict(d: dict[str, Any]) -> ReviewHistoryEntry:
    return ReviewHistoryEntry(
        id=int(d["id"]),
        card_id=int(d["card_id"]),
        quality=Rating.parse(d["quality"]),
        repetitions=int(d["repetitions"]),
        interval=int(d["interval"]),
        e_factor=float(d["e_factor"]),
        next_review_date=_parse_dt(d.get("next_review_date")),
        reviewed_at=_parse_dt(d["reviewed_at"]),
        previous_status=CardStatus(d["previous_status"]),
        new_status=CardStatus(d["new_status"]),
    )


def _entry_to_dict(e: ReviewHistoryEntry) -> dict[str, Any]:
    return {
        "id": e.id,
        "card_id": e.card_id,
        "quality": e.quality.value,
        "repetitions": e.repetitions,
        "interval": e.interval,
        "e_factor": e.e_factor,
        "next_review_date": _format_dt(e.next_review_date),
        "reviewed_at": _format_dt(e.reviewed_at),
        "previous_status": e.previous_status.value,
        "new_status": e.new_status.value,
    }


def _parse_dt(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    # safe_load already turns unquoted timestamps into datetimes
    dt = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _format_dt(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
