"""
Deck Stats Service: application layer orchestrator.

Coordinates fetching review history from the repository and aggregating it.
"""

import logging

from mneme.domain.review.ports import ReviewHistoryRepository
from mneme.domain.stats.models import DeckStatistics

from .metrics_calculator import StudyMetricsCalculator

logger = logging.getLogger(__name__)


class DeckStatsService:
    """
    Application service for per-deck review statistics.

    Depends on the ReviewHistoryRepository abstraction only.
    """

    def __init__(
        self,
        history_repo: ReviewHistoryRepository,
        calculator: StudyMetricsCalculator | None = None,
    ):
        """
        Args:
            history_repo: The repository (port) for review history.
            calculator: Optional custom calculator; uses default if not provided.
        """
        self._repo = history_repo
        self._calc = calculator or StudyMetricsCalculator()

    async def get_deck_statistics(self, deck_id: int) -> DeckStatistics:
        """
        Aggregate every review recorded for the deck's cards.

        A deck without history yields all-zero statistics.
        """
        entries = await self._repo.list_by_deck(deck_id)
        stats = self._calc.deck_statistics(entries)
        logger.debug(
            f"Deck {deck_id}: {stats.total_reviews} reviews, {stats.correct_percentage}% correct"
        )
        return stats
