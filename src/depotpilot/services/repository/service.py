"""Repository management service used by the API layer."""

from pathlib import Path

from depotpilot.exceptions import ConfigurationError
from depotpilot.logger import get_logger
from depotpilot.models.repository import RepositoryFilter, RepositorySettingsSnapshot, RepositoryState
from depotpilot.models.tasks import TaskKind
from depotpilot.services.tasks import LogAggregator, TaskOrchestrator

from .backend import RepositoryBackend
from .config import RepositoryConfig
from .matcher import normalize_platform_id

logger = get_logger(__name__)


class RepositoryService:
    """Coordinates repository configuration, vendor cmdlets and background tasks."""

    def __init__(
        self,
        config: RepositoryConfig,
        backend: RepositoryBackend,
        orchestrator: TaskOrchestrator,
        aggregator: LogAggregator,
    ) -> None:
        self.config = config
        self.backend = backend
        self.orchestrator = orchestrator
        self.aggregator = aggregator

    def _require_repository(self) -> Path:
        path = self.config.path
        if not path.is_dir():
            raise ConfigurationError("Repository path does not exist: {path}", path=str(path))
        return path

    def set_path(self, raw_path: str) -> Path:
        state = self.config.update(path=raw_path)
        self.aggregator.info(f"Repository path set to {state.path}")
        return state.path

    def get_info(self) -> tuple[str, RepositorySettingsSnapshot]:
        path = self._require_repository()
        info = self.backend.get_info(path)
        return info, self.config.settings

    def update_settings(
        self,
        on_missing: str | None = None,
        cache_mode: str | None = None,
        report_format: str | None = None,
    ) -> RepositoryState:
        """Apply settings to the repository, then commit them to the configuration."""
        changes = RepositoryConfig.validate_settings(
            on_missing=on_missing, cache_mode=cache_mode, report_format=report_format
        )
        path = self._require_repository()
        for name, value in changes.items():
            self.backend.set_setting(path, name, value)
            self.aggregator.info(f"Repository setting {name} set to {value}")
        return self.config.update(
            on_missing=changes.get("OnRemoteFileNotFound"),
            cache_mode=changes.get("OfflineCacheMode"),
            report_format=changes.get("RepositoryReport"),
        )

    def start_task(self, kind: TaskKind, ref_url: str | None = None) -> int:
        path = self._require_repository()
        params: dict[str, str] = {"path": str(path)}
        if kind == TaskKind.SYNC and ref_url and ref_url.strip():
            params["ref_url"] = ref_url.strip()
        return self.orchestrator.submit(kind, params)

    def _checked_filter(self, repo_filter: RepositoryFilter) -> RepositoryFilter:
        return repo_filter.model_copy(update={"platform": normalize_platform_id(repo_filter.platform)})

    def add_filter(self, repo_filter: RepositoryFilter) -> None:
        checked = self._checked_filter(repo_filter)
        path = self._require_repository()
        self.backend.add_filter(path, checked)
        self.aggregator.info(f"Filter added for platform {checked.platform}")

    def remove_filter(self, repo_filter: RepositoryFilter) -> None:
        checked = self._checked_filter(repo_filter)
        path = self._require_repository()
        self.backend.remove_filter(path, checked)
        self.aggregator.info(f"Filter removed for platform {checked.platform}")
