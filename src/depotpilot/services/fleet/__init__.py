"""Fleet services: endpoint registry, scan and deploy."""

from functools import lru_cache

from depotpilot.config import get_config
from depotpilot.utils import get_powershell_runner

from .deploy import DeployPipeline, classify_exit_code, parse_packages, parse_targets
from .registry import FleetRegistry
from .remote import (
    CimInventorySession,
    InventorySession,
    PingProbe,
    PowerShellRemoteSession,
    ReachabilityProbe,
    RemoteSession,
)
from .scan import ScanPipeline


@lru_cache
def get_fleet_registry() -> FleetRegistry:
    """Get or initialize the endpoint registry (singleton)."""
    return FleetRegistry()


@lru_cache
def get_reachability_probe() -> ReachabilityProbe:
    return PingProbe(get_config().remote.ping_timeout)


@lru_cache
def get_scan_pipeline() -> ScanPipeline:
    """Get or initialize the scan pipeline (singleton)."""
    from depotpilot.services.repository import get_applicability_matcher, get_repository_config
    from depotpilot.services.tasks import get_log_aggregator

    runner = get_powershell_runner()
    return ScanPipeline(
        get_fleet_registry(),
        get_log_aggregator(),
        get_reachability_probe(),
        lambda hostname: CimInventorySession(runner, hostname),
        get_applicability_matcher(),
        get_repository_config(),
    )


@lru_cache
def get_deploy_pipeline() -> DeployPipeline:
    """Get or initialize the deploy pipeline (singleton)."""
    from depotpilot.services.repository import get_repository_config
    from depotpilot.services.tasks import get_log_aggregator

    remote = get_config().remote
    runner = get_powershell_runner()
    return DeployPipeline(
        get_log_aggregator(),
        get_reachability_probe(),
        lambda hostname: PowerShellRemoteSession(runner, hostname, remote.staging_dir),
        get_repository_config(),
        remote.silent_args,
    )


__all__ = [
    "CimInventorySession",
    "DeployPipeline",
    "FleetRegistry",
    "InventorySession",
    "PingProbe",
    "PowerShellRemoteSession",
    "ReachabilityProbe",
    "RemoteSession",
    "ScanPipeline",
    "classify_exit_code",
    "get_deploy_pipeline",
    "get_fleet_registry",
    "get_reachability_probe",
    "get_scan_pipeline",
    "parse_packages",
    "parse_targets",
]
