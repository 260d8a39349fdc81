"""Data models for DepotPilot."""

from depotpilot.models.config import AppConfig
from depotpilot.models.fleet import (
    DeploymentOutcome,
    DeploymentReport,
    EndpointStatus,
    FleetEndpoint,
    OutcomeKind,
    SystemSnapshot,
)
from depotpilot.models.repository import RepositoryFilter, RepositoryPackage, RepositorySettingsSnapshot
from depotpilot.models.tasks import BackgroundTask, LogEntry, StreamKind, TaskKind, TaskState

__all__ = [
    "AppConfig",
    "BackgroundTask",
    "DeploymentOutcome",
    "DeploymentReport",
    "EndpointStatus",
    "FleetEndpoint",
    "LogEntry",
    "OutcomeKind",
    "RepositoryFilter",
    "RepositoryPackage",
    "RepositorySettingsSnapshot",
    "StreamKind",
    "SystemSnapshot",
    "TaskKind",
    "TaskState",
]
