"""API models for fleet operations."""

from pydantic import BaseModel

from depotpilot.models.api.repository import Envelope
from depotpilot.models.fleet import DeploymentOutcome, FleetEndpoint, SystemSnapshot


class HostnameRequest(BaseModel):
    hostname: str


class EndpointResponse(Envelope):
    endpoint: FleetEndpoint


class EndpointsResponse(Envelope):
    endpoints: list[FleetEndpoint] = []


class ScanResponse(Envelope):
    hostname: str
    status: str
    system: SystemSnapshot | None = None
    applicable: list[str] = []


class DeployRequest(BaseModel):
    """Targets may be one comma/newline-delimited string or a list of hostnames."""

    targets: str | list[str]
    packages: list[str]


class DeployResponse(Envelope):
    summary: dict[str, int]
    outcomes: list[DeploymentOutcome] = []
