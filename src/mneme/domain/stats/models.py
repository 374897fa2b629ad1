"""
Domain models for review statistics.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class DeckStatistics:
    """
    Rating counts over every review recorded for a deck.

    Attributes:
        total_reviews: Number of history entries.
        correct_reviews: Entries rated anything other than Again.
        correct_percentage: correct / total * 100, rounded to 2 decimals (0 when empty).
    """

    total_reviews: int
    correct_reviews: int
    correct_percentage: float
    again_count: int
    hard_count: int
    good_count: int
    easy_count: int
