# Application Review Package
from .formatting import format_interval, interval_minutes
from .service import ReviewService

__all__ = ["ReviewService", "format_interval", "interval_minutes"]
