"""Background task services."""

from functools import lru_cache

from depotpilot.config import get_config

from .aggregator import LogAggregator
from .orchestrator import Emit, TaskOrchestrator, TaskRunner


@lru_cache
def get_log_aggregator() -> LogAggregator:
    """Get or initialize the process-wide operator log (singleton)."""
    return LogAggregator(get_config().logs.capacity)


@lru_cache
def get_task_orchestrator() -> TaskOrchestrator:
    """Get or initialize the task orchestrator (singleton)."""
    from depotpilot.services.repository import get_repository_backend

    return TaskOrchestrator(get_log_aggregator(), get_repository_backend().run_task)


__all__ = [
    "Emit",
    "LogAggregator",
    "TaskOrchestrator",
    "TaskRunner",
    "get_log_aggregator",
    "get_task_orchestrator",
]
