# ruff: noqa: ANN001, ANN201, ANN204
import subprocess
import sys
from pathlib import Path

import pytest

from depotpilot.exceptions import ExecutionError, SessionError, TransferError
from depotpilot.services.fleet import CimInventorySession, PingProbe, PowerShellRemoteSession
from depotpilot.utils import SubprocessExecutor


class FakeRunner:
    def __init__(self, fail_on=None, output="0", json_value=None):
        self.scripts = []
        self.fail_on = fail_on
        self.output = output
        self.json_value = json_value

    def _check(self, body):
        self.scripts.append(body)
        if self.fail_on and self.fail_on in body:
            raise ExecutionError("{detail}", exit_code=1, detail=f"{self.fail_on} failed")

    def run(self, body):
        self._check(body)
        return []

    def run_output(self, body):
        self._check(body)
        return self.output

    def run_json(self, body):
        self._check(body)
        return self.json_value


def test_ping_command_per_platform(monkeypatch: pytest.MonkeyPatch):
    probe = PingProbe(timeout=1.5)

    monkeypatch.setattr(sys, "platform", "win32")
    assert probe.command("pc-01") == ["ping", "-n", "1", "-w", "1500", "pc-01"]

    monkeypatch.setattr(sys, "platform", "linux")
    assert probe.command("pc-01") == ["ping", "-c", "1", "-W", "2", "pc-01"]


def test_ping_reports_exit_status(monkeypatch: pytest.MonkeyPatch):
    calls = []

    def fake_run(*args, **kwargs):
        calls.append(args)
        return subprocess.CompletedProcess(args, 0 if args[-1] == "up" else 1, b"", b"")

    monkeypatch.setattr(SubprocessExecutor, "run_sync", staticmethod(fake_run))
    probe = PingProbe()

    assert probe.is_reachable("up") is True
    assert probe.is_reachable("down") is False
    # Option-like hostnames never reach the ping command
    assert probe.is_reachable("-f") is False
    assert len(calls) == 2


def test_ping_timeout_means_unreachable(monkeypatch: pytest.MonkeyPatch):
    def slow(*args, **kwargs):
        raise subprocess.TimeoutExpired(args, 1)

    monkeypatch.setattr(SubprocessExecutor, "run_sync", staticmethod(slow))

    assert PingProbe().is_reachable("pc-01") is False


def test_inventory_session_queries_cim():
    runner = FakeRunner(json_value="HP EliteBook 840 G9")

    with CimInventorySession(runner, "pc-01") as session:
        value = session.query("Win32_ComputerSystem", "Model")

    assert value == "HP EliteBook 840 G9"
    assert runner.scripts[0].startswith("Test-WSMan -ComputerName 'pc-01'")
    assert "Get-CimInstance -ComputerName 'pc-01' -ClassName 'Win32_ComputerSystem'" in runner.scripts[1]


def test_inventory_session_open_failure():
    with pytest.raises(SessionError, match="pc-01"):
        CimInventorySession(FakeRunner(fail_on="Test-WSMan"), "pc-01").open()


def test_remote_session_copy_execute_close():
    runner = FakeRunner(output="3010")
    session = PowerShellRemoteSession(runner, "pc-01", r"C:\Windows\Temp\DepotPilot")
    session.open()

    remote_path = session.copy(Path("/repo/sp100.exe"))
    exit_code = session.execute(remote_path, ["/s"])
    session.close()
    session.close()

    assert remote_path == r"C:\Windows\Temp\DepotPilot\sp100.exe"
    assert exit_code == 3010
    assert "Copy-Item" in runner.scripts[1] and "-ToSession" in runner.scripts[1]
    assert "Start-Process" in runner.scripts[2] and "-Wait -PassThru" in runner.scripts[2]
    assert "Remove-Item" in runner.scripts[3]
    # Second close is a no-op
    assert len(runner.scripts) == 4


def test_remote_session_copy_failure_is_transfer_error():
    session = PowerShellRemoteSession(FakeRunner(fail_on="Copy-Item"), "pc-01", r"C:\Temp")
    session.open()

    with pytest.raises(TransferError, match="sp100.exe"):
        session.copy(Path("/repo/sp100.exe"))


def test_remote_session_without_exit_code():
    session = PowerShellRemoteSession(FakeRunner(output=""), "pc-01", r"C:\Temp")
    session.open()

    with pytest.raises(ExecutionError):
        session.execute(r"C:\Temp\sp100.exe", ["/s"])


def test_remote_session_requires_open():
    with pytest.raises(SessionError):
        PowerShellRemoteSession(FakeRunner(), "pc-01", r"C:\Temp").copy(Path("/repo/sp100.exe"))
