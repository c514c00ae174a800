"""
Store Factory
Centralizes the logic for selecting the progress store backend.
"""

import logging

from lexis.application.config import AppConfig
from lexis.application.review_service import ReviewService
from lexis.application.stats.aggregator import StatsAggregator
from lexis.infrastructure.adapters.memory_store import InMemoryProgressStore
from lexis.infrastructure.adapters.sqlite_store import SqliteProgressStore

logger = logging.getLogger(__name__)


def get_progress_store(config: AppConfig) -> InMemoryProgressStore | SqliteProgressStore:
    """
    Returns the store implementation selected by config.

    Both implementations serve as the WordProgressStore and the ReviewEventLog.
    """
    if config.backend == "memory":
        logger.debug("Backend: in-memory")
        return InMemoryProgressStore()

    logger.debug(f"Backend: SQLite at {config.db_path}")
    return SqliteProgressStore(config.db_path)


def get_review_service(config: AppConfig) -> ReviewService:
    store = get_progress_store(config)
    return ReviewService(
        store,
        store,
        aggregator=StatsAggregator(tz=config.tzinfo),
        review_limit=config.review_limit,
    )
