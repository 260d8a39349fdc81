"""Inventory scan of fleet endpoints."""

from collections.abc import Callable
from datetime import datetime

from depotpilot.logger import get_logger
from depotpilot.models.fleet import UNKNOWN, EndpointStatus, FleetEndpoint, SystemSnapshot
from depotpilot.services.repository.config import RepositoryConfig
from depotpilot.services.repository.matcher import ApplicabilityMatcher
from depotpilot.services.tasks.aggregator import LogAggregator

from .registry import FleetRegistry
from .remote import InventorySession, ReachabilityProbe

logger = get_logger(__name__)

UNREACHABLE_MESSAGE = "Unreachable via Ping"
OS_CAPTION_PREFIX = "Microsoft "

# (snapshot field, CIM class, property)
INVENTORY_QUERIES: list[tuple[str, str, str]] = [
    ("model", "Win32_ComputerSystem", "Model"),
    ("serial_number", "Win32_BIOS", "SerialNumber"),
    ("platform_id", "Win32_BaseBoard", "Product"),
    ("os_caption", "Win32_OperatingSystem", "Caption"),
]

InventoryFactory = Callable[[str], InventorySession]


def _clean(value: str | None) -> str:
    if value is None or not value.strip():
        return UNKNOWN
    return value.strip()


def strip_os_prefix(caption: str) -> str:
    if caption.startswith(OS_CAPTION_PREFIX):
        return caption[len(OS_CAPTION_PREFIX) :]
    return caption


class ScanPipeline:
    """
    Scans one endpoint: ping, inventory over CIM, then applicable packages.

    Each step gates the next. Failures never escape ``scan``: the endpoint is
    marked Offline and the reason lands in its message and the operator log.
    """

    def __init__(
        self,
        registry: FleetRegistry,
        aggregator: LogAggregator,
        probe: ReachabilityProbe,
        inventory_factory: InventoryFactory,
        matcher: ApplicabilityMatcher,
        repository_config: RepositoryConfig,
    ) -> None:
        self.registry = registry
        self.aggregator = aggregator
        self.probe = probe
        self.inventory_factory = inventory_factory
        self.matcher = matcher
        self.repository_config = repository_config

    def collect(self, session: InventorySession) -> SystemSnapshot:
        values = {field: _clean(session.query(cls, prop)) for field, cls, prop in INVENTORY_QUERIES}
        values["os_caption"] = strip_os_prefix(values["os_caption"])
        return SystemSnapshot(**values)

    def scan(self, hostname: str) -> FleetEndpoint:
        endpoint = self.registry.get(hostname) or self.registry.add(hostname)
        host = endpoint.hostname
        self.registry.update(host, status=EndpointStatus.SCANNING, message="")
        self.aggregator.info(f"Scanning {host}")

        if not self.probe.is_reachable(host):
            self.aggregator.error(f"{host}: {UNREACHABLE_MESSAGE}")
            return self.registry.update(
                host,
                status=EndpointStatus.OFFLINE,
                message=UNREACHABLE_MESSAGE,
                last_scanned=datetime.now(),
            )

        try:
            with self.inventory_factory(host) as session:
                system = self.collect(session)
            applicable: list[str] = []
            if system.platform_id != UNKNOWN:
                applicable = self.matcher.find_applicable(self.repository_config.path, system.platform_id)
        except Exception as e:
            logger.warning("Scan failed", hostname=host, error=str(e))
            self.aggregator.error(f"{host}: scan failed: {e}")
            return self.registry.update(
                host,
                status=EndpointStatus.OFFLINE,
                message=f"Scan failed: {e}",
                last_scanned=datetime.now(),
            )

        self.aggregator.info(
            f"{host}: {system.model} ({system.platform_id}), {len(applicable)} applicable package(s)"
        )
        return self.registry.update(
            host,
            status=EndpointStatus.ONLINE,
            message="",
            system=system,
            applicable=applicable,
            last_scanned=datetime.now(),
        )

    def scan_all(self) -> list[FleetEndpoint]:
        """Scan every registered endpoint, one after another."""
        return [self.scan(endpoint.hostname) for endpoint in self.registry.list_endpoints()]
