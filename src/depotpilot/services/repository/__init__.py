"""Repository services."""

from functools import lru_cache
from pathlib import Path

from depotpilot.config import get_config
from depotpilot.logger import get_logger
from depotpilot.utils import get_powershell_runner

from .backend import RepositoryBackend
from .config import RepositoryConfig, resolve_repository_path
from .matcher import ApplicabilityMatcher, normalize_platform_id, parse_platform_ids
from .service import RepositoryService

logger = get_logger(__name__)


@lru_cache
def get_repository_config() -> RepositoryConfig:
    """Get or initialize the repository configuration (singleton).

    Starts at the configured default path when it exists, else the current
    working directory.
    """
    default_path = get_config().repository.default_path
    if default_path is not None and default_path.is_dir():
        path = default_path.resolve()
    else:
        if default_path is not None:
            logger.warning("Configured repository path not found, using working directory", path=str(default_path))
        path = Path.cwd()
    return RepositoryConfig(path)


@lru_cache
def get_repository_backend() -> RepositoryBackend:
    """Get or initialize the HPCMSL repository backend (singleton)."""
    return RepositoryBackend(get_powershell_runner())


@lru_cache
def get_applicability_matcher() -> ApplicabilityMatcher:
    """Get or initialize the descriptor matcher (singleton)."""
    repository = get_config().repository
    return ApplicabilityMatcher(repository.descriptor_extension, repository.installer_extension)


@lru_cache
def get_repository_service() -> RepositoryService:
    """Get or initialize the repository service (singleton)."""
    from depotpilot.services.tasks import get_log_aggregator, get_task_orchestrator

    return RepositoryService(
        get_repository_config(),
        get_repository_backend(),
        get_task_orchestrator(),
        get_log_aggregator(),
    )


__all__ = [
    "ApplicabilityMatcher",
    "RepositoryBackend",
    "RepositoryConfig",
    "RepositoryService",
    "get_applicability_matcher",
    "get_repository_backend",
    "get_repository_config",
    "get_repository_service",
    "normalize_platform_id",
    "parse_platform_ids",
    "resolve_repository_path",
]
