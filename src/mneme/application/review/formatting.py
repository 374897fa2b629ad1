"""Human-readable interval strings for review previews."""

from mneme.domain import constants
from mneme.domain.scheduling.models import CardStatus, SchedulingState


def interval_minutes(state: SchedulingState) -> int:
    """Interval of `state` expressed in minutes, whatever unit its status implies."""
    if state.status is CardStatus.REVIEW:
        return state.interval * constants.MINUTES_PER_DAY
    return state.interval


def format_interval(state: SchedulingState) -> str:
    """
    Render the interval as "<n> min", "1 day" or "<n> days".

    Anything under a day is shown in minutes; longer spans in whole days.
    """
    minutes = interval_minutes(state)
    if minutes < constants.MINUTES_PER_DAY:
        return f"{minutes} min"

    days = minutes // constants.MINUTES_PER_DAY
    return "1 day" if days == 1 else f"{days} days"
