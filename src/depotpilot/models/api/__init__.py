"""API models package."""

from depotpilot.models.api.fleet import (
    DeployRequest,
    DeployResponse,
    EndpointResponse,
    EndpointsResponse,
    HostnameRequest,
    ScanResponse,
)
from depotpilot.models.api.repository import (
    Envelope,
    FilterRequest,
    InfoResponse,
    LogsResponse,
    PathRequest,
    PathResponse,
    SettingsRequest,
    SyncRequest,
    TaskCreatedResponse,
    TaskInfo,
    TasksResponse,
)

__all__ = [
    "DeployRequest",
    "DeployResponse",
    "EndpointResponse",
    "EndpointsResponse",
    "Envelope",
    "FilterRequest",
    "HostnameRequest",
    "InfoResponse",
    "LogsResponse",
    "PathRequest",
    "PathResponse",
    "ScanResponse",
    "SettingsRequest",
    "SyncRequest",
    "TaskCreatedResponse",
    "TaskInfo",
    "TasksResponse",
]
