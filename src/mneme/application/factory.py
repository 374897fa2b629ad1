"""
Service Factory
Centralizes the logic for selecting the store backend and wiring services.
"""

import logging
import random

from mneme.application.config import AppConfig
from mneme.application.review.service import ReviewService
from mneme.application.scheduler import Scheduler
from mneme.application.stats.service import DeckStatsService
from mneme.domain.errors import StoreError
from mneme.domain.review.ports import ReviewUnitOfWork
from mneme.infrastructure.adapters.memory_store import InMemoryUnitOfWork
from mneme.infrastructure.adapters.yaml_store import YamlUnitOfWork

logger = logging.getLogger(__name__)


def get_unit_of_work(config: AppConfig) -> ReviewUnitOfWork:
    """
    Returns the appropriate ReviewUnitOfWork implementation based on config.
    """
    # 1. Manual selection
    if config.backend == "memory":
        return InMemoryUnitOfWork()

    if config.backend == "yaml":
        if config.state_file is None:
            raise StoreError("backend 'yaml' requires state_file to be set")
        return YamlUnitOfWork(config.state_file, settings=config.to_scheduler_settings())

    # 2. Auto selection: a configured state file means YAML
    if config.state_file is not None:
        logger.debug(f"Backend: yaml ({config.state_file})")
        return YamlUnitOfWork(config.state_file, settings=config.to_scheduler_settings())

    logger.debug("Backend: memory")
    return InMemoryUnitOfWork()


def build_review_service(
    config: AppConfig,
    uow: ReviewUnitOfWork | None = None,
    rng: random.Random | None = None,
) -> ReviewService:
    uow = uow or get_unit_of_work(config)
    scheduler = Scheduler(config.to_scheduler_settings(), rng=rng)
    return ReviewService(uow, scheduler=scheduler, rng=rng)


def build_stats_service(config: AppConfig, uow: ReviewUnitOfWork | None = None) -> DeckStatsService:
    uow = uow or get_unit_of_work(config)
    return DeckStatsService(uow.history)
