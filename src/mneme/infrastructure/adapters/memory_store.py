"""
In-memory stores: infrastructure adapter.

Implements the card and history ports over plain dicts, plus a unit of work
that snapshots both on entry and restores the snapshot on rollback.
"""

import asyncio
import copy
import dataclasses
import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from mneme.domain.review.models import Card, ReviewHistoryEntry
from mneme.domain.review.ports import (
    CardRepository,
    ReviewHistoryRepository,
    ReviewUnitOfWork,
)

logger = logging.getLogger(__name__)


class InMemoryCardRepository(CardRepository):
    """
    Dict-backed card store.

    Returns copies so callers never alias stored records.
    """

    def __init__(self, cards: Iterable[Card] = (), decks: Iterable[int] = ()):
        self._cards: dict[int, Card] = {card.id: card for card in cards}
        self._decks: set[int] = set(decks) | {card.deck_id for card in self._cards.values()}

    async def get(self, card_id: int) -> Card | None:
        card = self._cards.get(card_id)
        return dataclasses.replace(card) if card else None

    async def save(self, card: Card) -> None:
        self._cards[card.id] = dataclasses.replace(card)

    async def deck_exists(self, deck_id: int) -> bool:
        return deck_id in self._decks

    async def list_by_deck(self, deck_id: int) -> list[Card]:
        return [
            dataclasses.replace(card)
            for card in sorted(self._cards.values(), key=lambda c: c.id)
            if card.deck_id == deck_id
        ]

    def all_cards(self) -> list[Card]:
        return sorted(self._cards.values(), key=lambda c: c.id)

    def all_decks(self) -> list[int]:
        return sorted(self._decks)


class InMemoryReviewHistoryRepository(ReviewHistoryRepository):
    """
    List-backed review history.

    Needs the card repository to resolve deck membership for deck queries.
    """

    def __init__(self, cards: InMemoryCardRepository, entries: Iterable[ReviewHistoryEntry] = ()):
        self._cards = cards
        self._entries: list[ReviewHistoryEntry] = list(entries)
        self._next_id = max((e.id or 0 for e in self._entries), default=0) + 1

    async def append(self, entry: ReviewHistoryEntry) -> ReviewHistoryEntry:
        stored = dataclasses.replace(entry, id=self._next_id)
        self._next_id += 1
        self._entries.append(stored)
        return stored

    async def update(self, entry: ReviewHistoryEntry) -> ReviewHistoryEntry | None:
        for i, existing in enumerate(self._entries):
            if entry.id is not None and existing.id == entry.id:
                self._entries[i] = entry
                return entry
        return None

    async def delete_by_card(self, card_id: int) -> int:
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.card_id != card_id]
        return before - len(self._entries)

    async def list_by_card(self, card_id: int) -> list[ReviewHistoryEntry]:
        return self._sorted(e for e in self._entries if e.card_id == card_id)

    async def list_by_deck(self, deck_id: int) -> list[ReviewHistoryEntry]:
        card_ids = {card.id for card in await self._cards.list_by_deck(deck_id)}
        return self._sorted(e for e in self._entries if e.card_id in card_ids)

    def all_entries(self) -> list[ReviewHistoryEntry]:
        return list(self._entries)

    @staticmethod
    def _sorted(entries: Iterable[ReviewHistoryEntry]) -> list[ReviewHistoryEntry]:
        # Stable on insertion order for equal timestamps.
        return sorted(entries, key=lambda e: (_utc_key(e.reviewed_at), e.id or 0))


def _utc_key(at: datetime) -> datetime:
    # Naive timestamps count as UTC so mixed history still sorts.
    return at if at.tzinfo else at.replace(tzinfo=timezone.utc)


class InMemoryUnitOfWork(ReviewUnitOfWork):
    """
    Transactional scope over the in-memory repositories.

    Units are serialized with an asyncio.Lock; `rollback` restores the state
    captured by `begin`.
    """

    def __init__(
        self,
        cards: InMemoryCardRepository | None = None,
        history: InMemoryReviewHistoryRepository | None = None,
    ):
        self.cards = cards or InMemoryCardRepository()
        self.history = history or InMemoryReviewHistoryRepository(self.cards)
        self._lock = asyncio.Lock()
        self._snapshot: tuple[dict, set, list, int] | None = None

    async def begin(self) -> None:
        await self._lock.acquire()
        self._snapshot = (
            copy.deepcopy(self.cards._cards),
            set(self.cards._decks),
            list(self.history._entries),
            self.history._next_id,
        )

    async def commit(self) -> None:
        self._snapshot = None
        self._lock.release()

    async def rollback(self) -> None:
        if self._snapshot is not None:
            cards, decks, entries, next_id = self._snapshot
            self.cards._cards = cards
            self.cards._decks = decks
            self.history._entries = entries
            self.history._next_id = next_id
            self._snapshot = None
            logger.info("Rolled back uncommitted review changes")
        self._lock.release()
