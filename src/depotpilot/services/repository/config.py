"""Process-wide repository configuration."""

import threading
from pathlib import Path

from depotpilot.exceptions import ConfigurationError, ValidationError
from depotpilot.logger import get_logger
from depotpilot.models.repository import (
    CACHE_MODE_VALUES,
    ON_MISSING_VALUES,
    REPORT_FORMAT_VALUES,
    RepositorySettingsSnapshot,
    RepositoryState,
)

logger = get_logger(__name__)


def _canonical(value: str, allowed: tuple[str, ...], setting: str) -> str:
    """Match ``value`` case-insensitively against the vendor's spelling."""
    for candidate in allowed:
        if candidate.lower() == value.strip().lower():
            return candidate
    raise ValidationError(
        "Invalid value '{value}' for {setting}; expected one of: {allowed}",
        value=value,
        setting=setting,
        allowed=", ".join(allowed),
    )


def resolve_repository_path(raw: str | Path) -> Path:
    """Validate a user-supplied repository path.

    Raises:
        ValidationError: If the path is blank
        ConfigurationError: If the path does not exist or is not a directory
    """
    text = str(raw).strip()
    if not text:
        raise ValidationError("Repository path is required")
    path = Path(text).expanduser()
    if not path.is_dir():
        raise ConfigurationError("Repository path does not exist: {path}", path=str(path))
    return path.resolve()


class RepositoryConfig:
    """
    Active repository path plus the three repository settings.

    Constructed once at startup and shared by reference. ``update`` is the only
    mutator; it validates every argument before committing any of them, and
    the last committed write wins.
    """

    def __init__(self, path: Path, settings: RepositorySettingsSnapshot | None = None) -> None:
        self._path = path
        self._settings = settings or RepositorySettingsSnapshot()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        with self._lock:
            return self._path

    @property
    def settings(self) -> RepositorySettingsSnapshot:
        with self._lock:
            return self._settings.model_copy()

    def state(self) -> RepositoryState:
        with self._lock:
            return RepositoryState(path=self._path, settings=self._settings.model_copy())

    @staticmethod
    def validate_settings(
        *,
        on_missing: str | None = None,
        cache_mode: str | None = None,
        report_format: str | None = None,
    ) -> dict[str, str]:
        """Return the given settings keyed by vendor name, in the vendor's spelling.

        Raises:
            ValidationError: If a value is not one the vendor accepts
        """
        changes: dict[str, str] = {}
        if on_missing is not None:
            changes["OnRemoteFileNotFound"] = _canonical(on_missing, ON_MISSING_VALUES, "OnRemoteFileNotFound")
        if cache_mode is not None:
            changes["OfflineCacheMode"] = _canonical(cache_mode, CACHE_MODE_VALUES, "OfflineCacheMode")
        if report_format is not None:
            changes["RepositoryReport"] = _canonical(report_format, REPORT_FORMAT_VALUES, "RepositoryReport")
        return changes

    def update(
        self,
        *,
        path: str | Path | None = None,
        on_missing: str | None = None,
        cache_mode: str | None = None,
        report_format: str | None = None,
    ) -> RepositoryState:
        """Validate and commit the given fields; omitted fields keep their value.

        Raises:
            ValidationError: If a value is not one the vendor accepts
            ConfigurationError: If the new path is not an existing directory
        """
        new_path = resolve_repository_path(path) if path is not None else None
        changes = self.validate_settings(on_missing=on_missing, cache_mode=cache_mode, report_format=report_format)

        with self._lock:
            if new_path is not None:
                self._path = new_path
            if changes:
                self._settings = self._settings.model_copy(update=changes)
            state = RepositoryState(path=self._path, settings=self._settings.model_copy())

        logger.info("Repository configuration updated", path=str(state.path), **changes)
        return state
