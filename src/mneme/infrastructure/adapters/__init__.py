# Infrastructure Adapters Package
from .memory_store import (
    InMemoryCardRepository,
    InMemoryReviewHistoryRepository,
    InMemoryUnitOfWork,
)
from .yaml_store import YamlUnitOfWork

__all__ = [
    "InMemoryCardRepository",
    "InMemoryReviewHistoryRepository",
    "InMemoryUnitOfWork",
    "YamlUnitOfWork",
]
