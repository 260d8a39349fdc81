"""Fleet endpoint and deployment models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

UNKNOWN = "Unknown"


class EndpointStatus(str, Enum):
    PENDING = "Pending"
    SCANNING = "Scanning"
    ONLINE = "Online"
    OFFLINE = "Offline"


class SystemSnapshot(BaseModel):
    """Inventory collected from a remote machine. Missing facets are 'Unknown'."""

    model: str = UNKNOWN
    serial_number: str = UNKNOWN
    platform_id: str = UNKNOWN
    os_caption: str = UNKNOWN


class FleetEndpoint(BaseModel):
    """A tracked machine and what the last scan learned about it."""

    hostname: str
    status: EndpointStatus = EndpointStatus.PENDING
    message: str = ""
    system: SystemSnapshot | None = None
    # None until the first successful scan
    applicable: list[str] | None = None
    last_scanned: datetime | None = None


class OutcomeKind(str, Enum):
    SUCCESS = "Success"
    SUCCESS_REBOOT_REQUIRED = "SuccessRebootRequired"
    FAILURE = "Failure"
    SKIPPED = "Skipped"


class DeploymentOutcome(BaseModel):
    target: str
    package: str | None
    outcome: OutcomeKind
    detail: str = ""
    exit_code: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome in (OutcomeKind.SUCCESS, OutcomeKind.SUCCESS_REBOOT_REQUIRED)


class DeploymentReport(BaseModel):
    """Outcomes of one deploy call, in attempt order."""

    targets: list[str]
    packages: list[str]
    outcomes: list[DeploymentOutcome] = Field(default_factory=list)

    def count(self, kind: OutcomeKind) -> int:
        return sum(1 for o in self.outcomes if o.outcome == kind)

    def summary(self) -> dict[str, int]:
        return {kind.value: self.count(kind) for kind in OutcomeKind}
