# Domain Scheduling Package
from .models import CardStatus, Rating, SchedulerSettings, SchedulingState

__all__ = ["CardStatus", "Rating", "SchedulerSettings", "SchedulingState"]
