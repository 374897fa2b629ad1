# Domain Stats Package
from .models import DeckStatistics

__all__ = ["DeckStatistics"]
