"""
Metrics calculator for deriving insights from review history.

This is a pure computation module with no I/O.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import date, datetime, timedelta, timezone

from mneme.domain.review.models import ReviewHistoryEntry, StudyStreak
from mneme.domain.scheduling.models import Rating
from mneme.domain.stats.models import DeckStatistics


class StudyMetricsCalculator:
    """
    Computes rating counts and study streaks from history entries.

    Stateless and side-effect free.
    """

    def deck_statistics(self, entries: Iterable[ReviewHistoryEntry]) -> DeckStatistics:
        counts = Counter(Rating.parse(entry.quality) for entry in entries)
        total = sum(counts.values())
        correct = sum(n for rating, n in counts.items() if rating.is_correct)

        return DeckStatistics(
            total_reviews=total,
            correct_reviews=correct,
            correct_percentage=self._percentage(correct, total),
            again_count=counts[Rating.AGAIN],
            hard_count=counts[Rating.HARD],
            good_count=counts[Rating.GOOD],
            easy_count=counts[Rating.EASY],
        )

    def study_streak(self, timestamps: Iterable[datetime], today: date) -> StudyStreak:
        """
        Count consecutive study dates ending at the most recent one.

        Timestamps are reduced to UTC calendar dates, so several reviews on
        one day count once. The streak is only alive if the most recent date
        is today or yesterday; otherwise it is reported as 0 days with the
        last study date kept for display.
        """
        days = sorted({self._study_date(ts) for ts in timestamps}, reverse=True)
        if not days:
            return StudyStreak(consecutive_days=0, streak_start_date=None, last_study_date=None)

        last = days[0]
        if last < today - timedelta(days=1):
            return StudyStreak(consecutive_days=0, streak_start_date=None, last_study_date=last)

        start = last
        for day in days[1:]:
            if day != start - timedelta(days=1):
                break
            start = day

        return StudyStreak(
            consecutive_days=(last - start).days + 1,
            streak_start_date=start,
            last_study_date=last,
        )

    def _percentage(self, part: int, total: int) -> float:
        if total == 0:
            return 0.0
        return round(part / total * 100, 2)

    def _study_date(self, ts: datetime) -> date:
        if ts.tzinfo is None:
            return ts.date()
        return ts.astimezone(timezone.utc).date()
