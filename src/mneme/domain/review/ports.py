"""
Ports (interfaces) for card and review-history persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import Card, ReviewHistoryEntry


class CardRepository(ABC):
    """
    Port for reading cards and writing their scheduling state.

    Implementations:
        - InMemoryCardRepository: dict-backed, used by tests and embedding callers.
        - The YAML unit of work reuses it over a file-loaded snapshot.
    """

    @abstractmethod
    async def get(self, card_id: int) -> Card | None:
        """Return the card, or None if no card has this id."""
        pass

    @abstractmethod
    async def save(self, card: Card) -> None:
        """Persist the card's current scheduling state."""
        pass

    @abstractmethod
    async def deck_exists(self, deck_id: int) -> bool:
        pass

    @abstractmethod
    async def list_by_deck(self, deck_id: int) -> list[Card]:
        """All cards of the deck, in ascending card id order."""
        pass


class ReviewHistoryRepository(ABC):
    """
    Port for the append-only review history.

    Update and delete exist for maintenance and cascading cleanup only.
    """

    @abstractmethod
    async def append(self, entry: ReviewHistoryEntry) -> ReviewHistoryEntry:
        """
        Store a new entry.

        Returns:
            The stored entry with its `id` assigned.
        """
        pass

    @abstractmethod
    async def update(self, entry: ReviewHistoryEntry) -> ReviewHistoryEntry | None:
        """Replace the stored entry with the same id. Returns None if the id is unknown."""
        pass

    @abstractmethod
    async def delete_by_card(self, card_id: int) -> int:
        """Delete every entry of the card and return how many were removed."""
        pass

    @abstractmethod
    async def list_by_card(self, card_id: int) -> list[ReviewHistoryEntry]:
        """Entries of the card, sorted by reviewed_at ascending."""
        pass

    @abstractmethod
    async def list_by_deck(self, deck_id: int) -> list[ReviewHistoryEntry]:
        """Entries for every card of the deck, sorted by reviewed_at ascending."""
        pass

    async def count_by_card(self, card_id: int) -> int:
        return len(await self.list_by_card(card_id))

    async def latest_for_card(self, card_id: int) -> ReviewHistoryEntry | None:
        entries = await self.list_by_card(card_id)
        return entries[-1] if entries else None


class ReviewUnitOfWork(ABC):
    """
    Atomic scope over both repositories.

    Usage:
        async with uow:
            card = await uow.cards.get(1)
            ...

    Leaving the block normally commits; leaving it with an exception rolls
    back every write made inside it.
    """

    cards: CardRepository
    history: ReviewHistoryRepository

    async def __aenter__(self) -> "ReviewUnitOfWork":
        await self.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            await self.commit()
        else:
            await self.rollback()

    @abstractmethod
    async def begin(self) -> None:
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass
