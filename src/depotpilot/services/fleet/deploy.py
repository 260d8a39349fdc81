"""Push repository packages to fleet endpoints and run them silently."""

import re
from collections.abc import Callable, Iterable
from pathlib import Path

from depotpilot.exceptions import ConnectivityError, ExecutionError, SessionError, TransferError, ValidationError
from depotpilot.logger import get_logger
from depotpilot.models.fleet import DeploymentOutcome, DeploymentReport, OutcomeKind
from depotpilot.services.repository.config import RepositoryConfig
from depotpilot.services.tasks.aggregator import LogAggregator

from .remote import ReachabilityProbe, RemoteSession

logger = get_logger(__name__)

REBOOT_REQUIRED_EXIT_CODE = 3010

SessionFactory = Callable[[str], RemoteSession]

_TARGET_SEPARATORS = re.compile(r"[,\r\n]+")


def _dedupe(values: Iterable[str], *, casefold: bool = False) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        value = value.strip()
        key = value.lower() if casefold else value
        if value and key not in seen:
            seen.add(key)
            result.append(value)
    return result


def parse_targets(targets: str | Iterable[str]) -> list[str]:
    """Split a comma/newline-delimited string (or a list) into unique hostnames."""
    if isinstance(targets, str):
        targets = _TARGET_SEPARATORS.split(targets)
    return _dedupe(targets, casefold=True)


def parse_packages(packages: Iterable[str]) -> list[str]:
    return _dedupe(packages)


def classify_exit_code(exit_code: int) -> OutcomeKind:
    if exit_code == 0:
        return OutcomeKind.SUCCESS
    if exit_code == REBOOT_REQUIRED_EXIT_CODE:
        return OutcomeKind.SUCCESS_REBOOT_REQUIRED
    return OutcomeKind.FAILURE


def is_plain_file_name(name: str) -> bool:
    return name not in (".", "..") and "/" not in name and "\\" not in name


class DeployPipeline:
    """
    Sequential deployment: every target, then every package on that target.

    A failure on one (target, package) pair is recorded and the loop moves on.
    Each pair gets its own remote session, which is always closed.
    """

    def __init__(
        self,
        aggregator: LogAggregator,
        probe: ReachabilityProbe,
        session_factory: SessionFactory,
        repository_config: RepositoryConfig,
        silent_args: list[str] | None = None,
    ) -> None:
        self.aggregator = aggregator
        self.probe = probe
        self.session_factory = session_factory
        self.repository_config = repository_config
        self.silent_args = list(silent_args) if silent_args is not None else ["/s"]

    def deploy(self, targets: str | Iterable[str], packages: Iterable[str]) -> DeploymentReport:
        """Deploy ``packages`` to ``targets``.

        Raises:
            ValidationError: If either list is empty once blanks are dropped
        """
        target_list = parse_targets(targets)
        package_list = parse_packages(packages)
        if not target_list:
            raise ValidationError("At least one target is required")
        if not package_list:
            raise ValidationError("At least one package is required")

        report = DeploymentReport(targets=target_list, packages=package_list)
        repo_path = self.repository_config.path
        self.aggregator.info(f"Deploying {len(package_list)} package(s) to {len(target_list)} target(s)")

        for target in target_list:
            start = len(report.outcomes)
            if not self.probe.is_reachable(target):
                error = ConnectivityError("{host} is unreachable", host=target)
                self.aggregator.error(f"{target}: unreachable, skipping {len(package_list)} package(s)")
                report.outcomes.extend(
                    DeploymentOutcome(target=target, package=p, outcome=OutcomeKind.SKIPPED, detail=str(error))
                    for p in package_list
                )
                continue

            for package in package_list:
                report.outcomes.append(self._deploy_one(target, package, repo_path))

            self._log_target_summary(target, report.outcomes[start:])

        logger.info("Deployment finished", **report.summary())
        return report

    def _deploy_one(self, target: str, package: str, repo_path: Path) -> DeploymentOutcome:
        local = repo_path / package
        if not is_plain_file_name(package) or not local.is_file():
            self.aggregator.warning(f"{target}: {package} skipped, not found in repository")
            return DeploymentOutcome(
                target=target, package=package, outcome=OutcomeKind.SKIPPED, detail="Not found in repository"
            )

        session = self.session_factory(target)
        try:
            session.open()
            remote_path = session.copy(local)
            exit_code = session.execute(remote_path, self.silent_args)
        except (SessionError, TransferError, ExecutionError) as e:
            self.aggregator.error(f"{target}: {package} failed: {e}")
            return DeploymentOutcome(
                target=target,
                package=package,
                outcome=OutcomeKind.FAILURE,
                detail=str(e),
                exit_code=getattr(e, "exit_code", None),
            )
        except Exception as e:
            logger.warning("Deployment step failed", hostname=target, package=package, error=str(e))
            self.aggregator.error(f"{target}: {package} failed: {e}")
            return DeploymentOutcome(target=target, package=package, outcome=OutcomeKind.FAILURE, detail=str(e))
        finally:
            self._close(session, target)

        outcome = classify_exit_code(exit_code)
        message = f"{target}: {package} exited with {exit_code} ({outcome.value})"
        if outcome == OutcomeKind.FAILURE:
            self.aggregator.error(message)
        else:
            self.aggregator.info(message)
        return DeploymentOutcome(target=target, package=package, outcome=outcome, exit_code=exit_code)

    def _close(self, session: RemoteSession, target: str) -> None:
        try:
            session.close()
        except Exception as e:
            logger.warning("Remote session close failed", hostname=target, error=str(e))
            self.aggregator.warning(f"{target}: {e}")

    def _log_target_summary(self, target: str, outcomes: list[DeploymentOutcome]) -> None:
        counts = {kind: sum(1 for o in outcomes if o.outcome == kind) for kind in OutcomeKind}
        self.aggregator.info(
            f"{target}: {counts[OutcomeKind.SUCCESS]} succeeded, "
            f"{counts[OutcomeKind.SUCCESS_REBOOT_REQUIRED]} need reboot, "
            f"{counts[OutcomeKind.FAILURE]} failed, {counts[OutcomeKind.SKIPPED]} skipped"
        )
