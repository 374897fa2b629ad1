# Domain Review Package
from .models import Card, RatingSubmission, ReviewHistoryEntry, ReviewStatus, StudyStreak
from .ports import CardRepository, ReviewHistoryRepository, ReviewUnitOfWork

__all__ = [
    "Card",
    "RatingSubmission",
    "ReviewHistoryEntry",
    "ReviewStatus",
    "StudyStreak",
    "CardRepository",
    "ReviewHistoryRepository",
    "ReviewUnitOfWork",
]
