# Application Stats Package
from .metrics_calculator import StudyMetricsCalculator
from .service import DeckStatsService

__all__ = ["StudyMetricsCalculator", "DeckStatsService"]
