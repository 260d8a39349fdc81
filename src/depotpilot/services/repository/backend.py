"""Repository operations backed by the HP Client Management Script Library.

Each operation is a short PowerShell script built from the HPCMSL repository
cmdlets and run from inside the repository directory. Long operations stream
their records through an ``emit`` callback so the task orchestrator can tag
and collect them; short ones run to completion and return their output.
"""

from pathlib import Path
from typing import Any

from depotpilot.exceptions import ValidationError
from depotpilot.logger import get_logger
from depotpilot.models.repository import RepositoryFilter
from depotpilot.models.tasks import TaskKind
from depotpilot.utils.powershell import Emit, PowerShellRunner, quote, quote_list

logger = get_logger(__name__)

# Set-RepositoryConfiguration takes the value under a different parameter per setting
_SETTING_VALUE_PARAMS = {
    "OnRemoteFileNotFound": "-Value",
    "OfflineCacheMode": "-CacheValue",
    "RepositoryReport": "-Format",
}


def _in_repository(path: Path | str, script: str) -> str:
    return f"Set-Location -LiteralPath {quote(path)}\n{script}"


def _filter_arguments(repo_filter: RepositoryFilter, *, for_removal: bool) -> str:
    args = [f"-Platform {quote(repo_filter.platform)}"]
    os_name = repo_filter.os or "*"
    args.append(f"-Os {quote(os_name)}")
    if repo_filter.os_ver and os_name != "*":
        args.append(f"-OsVer {quote(repo_filter.os_ver)}")
    args.append(f"-Category {quote_list(repo_filter.category or ['*'])}")
    args.append(f"-ReleaseType {quote_list(repo_filter.release_type or ['*'])}")
    if repo_filter.characteristic:
        args.append(f"-Characteristic {quote_list(repo_filter.characteristic)}")
    if for_removal:
        args.append("-Yes")
    elif repo_filter.prefer_ltsc:
        args.append("-PreferLTSC")
    return " ".join(args)


class RepositoryBackend:
    """Translates repository operations into HPCMSL cmdlet invocations."""

    def __init__(self, runner: PowerShellRunner) -> None:
        self.runner = runner

    def run_task(self, kind: TaskKind, params: dict[str, Any], emit: Emit) -> None:
        """Run one background repository operation (the orchestrator's worker body)."""
        path = params["path"]
        if kind == TaskKind.INIT:
            self.initialize(path, emit)
        elif kind == TaskKind.SYNC:
            self.sync(path, emit, reference_url=params.get("ref_url"))
        elif kind == TaskKind.CLEANUP:
            self.cleanup(path, emit)
        else:
            raise ValueError(f"Unsupported task kind: {kind}")

    def initialize(self, path: Path | str, emit: Emit) -> None:
        logger.info("Initializing repository", path=str(path))
        self.runner.stream(_in_repository(path, "Initialize-Repository -Verbose"), emit)

    def sync(self, path: Path | str, emit: Emit, reference_url: str | None = None) -> None:
        logger.info("Synchronizing repository", path=str(path), reference_url=reference_url)
        command = "Invoke-RepositorySync -Verbose"
        if reference_url:
            command += f" -ReferenceUrl {quote(reference_url)}"
        self.runner.stream(_in_repository(path, command), emit)

    def cleanup(self, path: Path | str, emit: Emit) -> None:
        logger.info("Cleaning up repository", path=str(path))
        self.runner.stream(_in_repository(path, "Invoke-RepositoryCleanup -Verbose"), emit)

    def get_info(self, path: Path | str) -> str:
        """Return the repository description (filters, settings, last sync) as text."""
        return self.runner.run_output(_in_repository(path, "Get-RepositoryInfo | Format-List"))

    def set_setting(self, path: Path | str, name: str, value: str) -> None:
        param = _SETTING_VALUE_PARAMS.get(name)
        if param is None:
            raise ValidationError("Unknown repository setting: {name}", name=name)
        logger.info("Applying repository setting", path=str(path), setting=name, value=value)
        self.runner.run(_in_repository(path, f"Set-RepositoryConfiguration -Setting {name} {param} {quote(value)}"))

    def add_filter(self, path: Path | str, repo_filter: RepositoryFilter) -> None:
        logger.info("Adding repository filter", path=str(path), platform=repo_filter.platform)
        args = _filter_arguments(repo_filter, for_removal=False)
        self.runner.run(_in_repository(path, f"Add-RepositoryFilter {args}"))

    def remove_filter(self, path: Path | str, repo_filter: RepositoryFilter) -> None:
        logger.info("Removing repository filter", path=str(path), platform=repo_filter.platform)
        args = _filter_arguments(repo_filter, for_removal=True)
        self.runner.run(_in_repository(path, f"Remove-RepositoryFilter {args}"))
