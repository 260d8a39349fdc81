# ruff: noqa: ANN001, ANN201, ANN204
from pathlib import Path

from depotpilot.exceptions import SessionError
from depotpilot.models.fleet import EndpointStatus
from depotpilot.services.fleet import FleetRegistry, InventorySession, ReachabilityProbe, ScanPipeline
from depotpilot.services.repository import ApplicabilityMatcher, RepositoryConfig
from depotpilot.services.tasks import LogAggregator

INVENTORY = {
    ("Win32_ComputerSystem", "Model"): "HP EliteBook 840 G9",
    ("Win32_BIOS", "SerialNumber"): "5CG1234XYZ",
    ("Win32_BaseBoard", "Product"): "8AB8",
    ("Win32_OperatingSystem", "Caption"): "Microsoft Windows 11 Enterprise",
}


class FakeProbe(ReachabilityProbe):
    def __init__(self, reachable):
        self.reachable = set(reachable)

    def is_reachable(self, hostname):
        return hostname in self.reachable


class FakeInventory(InventorySession):
    def __init__(self, hostname, values, fail_open=False, fail_query=False):
        self.hostname = hostname
        self.values = values
        self.fail_open = fail_open
        self.fail_query = fail_query
        self.opened = False
        self.closed = False

    def open(self):
        if self.fail_open:
            raise SessionError("Cannot open remote session to {host}", host=self.hostname)
        self.opened = True

    def query(self, class_name, property_name):
        if self.fail_query:
            raise RuntimeError("WinRM timeout")
        return self.values.get((class_name, property_name))

    def close(self):
        self.closed = True


def make_repo(path: Path) -> Path:
    (path / "sp100.cva").write_text("[System Information]\nSysId1=0x8AB8\n", encoding="utf-8")
    (path / "sp100.exe").write_bytes(b"MZ")
    return path


def make_pipeline(tmp_path, reachable=("pc-01",), **inventory_kwargs):
    sessions = []
    values = inventory_kwargs.pop("values", INVENTORY)

    def factory(hostname):
        session = FakeInventory(hostname, values, **inventory_kwargs)
        sessions.append(session)
        return session

    registry = FleetRegistry()
    aggregator = LogAggregator(capacity=50)
    pipeline = ScanPipeline(
        registry,
        aggregator,
        FakeProbe(reachable),
        factory,
        ApplicabilityMatcher(),
        RepositoryConfig(make_repo(tmp_path)),
    )
    return pipeline, registry, aggregator, sessions


def test_scan_online_endpoint(tmp_path: Path):
    pipeline, registry, _, sessions = make_pipeline(tmp_path)

    endpoint = pipeline.scan("pc-01")

    assert endpoint.status == EndpointStatus.ONLINE
    assert endpoint.system.model == "HP EliteBook 840 G9"
    assert endpoint.system.platform_id == "8AB8"
    assert endpoint.system.os_caption == "Windows 11 Enterprise"
    assert endpoint.applicable == ["sp100.exe"]
    assert endpoint.last_scanned is not None
    assert sessions[0].closed
    assert registry.get("pc-01").status == EndpointStatus.ONLINE


def test_unreachable_endpoint_opens_no_session(tmp_path: Path):
    pipeline, _, aggregator, sessions = make_pipeline(tmp_path, reachable=())

    endpoint = pipeline.scan("pc-02")

    assert endpoint.status == EndpointStatus.OFFLINE
    assert endpoint.message == "Unreachable via Ping"
    assert sessions == []
    assert any("Unreachable via Ping" in e.message for e in aggregator.snapshot())


def test_missing_inventory_values_become_unknown(tmp_path: Path):
    pipeline, _, _, _ = make_pipeline(tmp_path, values={("Win32_ComputerSystem", "Model"): "HP ProDesk"})

    endpoint = pipeline.scan("pc-01")

    assert endpoint.status == EndpointStatus.ONLINE
    assert endpoint.system.model == "HP ProDesk"
    assert endpoint.system.serial_number == "Unknown"
    assert endpoint.system.platform_id == "Unknown"
    assert endpoint.applicable == []


def test_query_failure_marks_offline_and_closes_session(tmp_path: Path):
    pipeline, _, _, sessions = make_pipeline(tmp_path, fail_query=True)

    endpoint = pipeline.scan("pc-01")

    assert endpoint.status == EndpointStatus.OFFLINE
    assert endpoint.message == "Scan failed: WinRM timeout"
    assert sessions[0].closed


def test_session_open_failure_marks_offline(tmp_path: Path):
    pipeline, _, _, _ = make_pipeline(tmp_path, fail_open=True)

    endpoint = pipeline.scan("pc-01")

    assert endpoint.status == EndpointStatus.OFFLINE
    assert "Cannot open remote session to pc-01" in endpoint.message


def test_scan_all_visits_every_registered_endpoint(tmp_path: Path):
    pipeline, registry, _, _ = make_pipeline(tmp_path, reachable=("pc-01",))
    registry.add("pc-01")
    registry.add("pc-02")

    results = pipeline.scan_all()

    assert [(e.hostname, e.status) for e in results] == [
        ("pc-01", EndpointStatus.ONLINE),
        ("pc-02", EndpointStatus.OFFLINE),
    ]
