"""Adapters for the remote primitives used by the scan and deploy pipelines.

The pipelines depend only on the abstract interfaces below. The concrete
implementations use the system ``ping`` and PowerShell remoting (WinRM/CIM),
run through ``PowerShellRunner``.
"""

import math
import subprocess
import sys
from abc import ABC, abstractmethod
from pathlib import Path, PureWindowsPath
from types import TracebackType

from depotpilot.exceptions import ExecutionError, SessionError, TransferError
from depotpilot.logger import get_logger
from depotpilot.utils.powershell import PowerShellRunner, quote, quote_list
from depotpilot.utils.subprocess_executor import SubprocessExecutor

logger = get_logger(__name__)


class ReachabilityProbe(ABC):
    @abstractmethod
    def is_reachable(self, hostname: str) -> bool:
        """Return True if ``hostname`` answers a single bounded liveness check."""


class PingProbe(ReachabilityProbe):
    """One ICMP echo request through the system ``ping`` command."""

    def __init__(self, timeout: float = 1.0) -> None:
        self.timeout = timeout

    def command(self, hostname: str) -> list[str]:
        if sys.platform == "win32":
            return ["ping", "-n", "1", "-w", str(int(self.timeout * 1000)), hostname]
        if sys.platform == "darwin":
            return ["ping", "-c", "1", "-t", str(max(1, math.ceil(self.timeout))), hostname]
        return ["ping", "-c", "1", "-W", str(max(1, math.ceil(self.timeout))), hostname]

    def is_reachable(self, hostname: str) -> bool:
        # A leading dash would be read as a ping option
        if not hostname or hostname.startswith("-"):
            return False
        try:
            result = SubprocessExecutor.run_sync(*self.command(hostname), timeout=self.timeout + 5)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Ping failed to run", hostname=hostname, error=str(e))
            return False
        return result.returncode == 0


class InventorySession(ABC):
    """A remote inventory session. Use as a context manager to guarantee ``close``."""

    hostname: str

    @abstractmethod
    def open(self) -> None:
        """Connect to the target. Raises SessionError on failure."""

    @abstractmethod
    def query(self, class_name: str, property_name: str) -> str | None:
        """Return one property of the first instance of a CIM class, or None."""

    @abstractmethod
    def close(self) -> None:
        """Release the session. Safe to call more than once."""

    def __enter__(self) -> "InventorySession":
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class RemoteSession(ABC):
    """A remote execution session used to stage and run installers."""

    hostname: str

    @abstractmethod
    def open(self) -> None:
        """Connect to the target. Raises SessionError on failure."""

    @abstractmethod
    def copy(self, local_path: Path) -> str:
        """Copy a file to the staging location and return its remote path. Raises TransferError."""

    @abstractmethod
    def execute(self, remote_path: str, arguments: list[str]) -> int:
        """Run a staged file, wait for it, and return its exit code. Raises ExecutionError."""

    @abstractmethod
    def close(self) -> None:
        """Release the session and staged files. Safe to call more than once."""


def _check_wsman(runner: PowerShellRunner, hostname: str) -> None:
    try:
        runner.run(f"Test-WSMan -ComputerName {quote(hostname)} | Out-Null")
    except ExecutionError as e:
        raise SessionError("Cannot open remote session to {host}: {error}", host=hostname, error=str(e)) from e


class CimInventorySession(InventorySession):
    """Inventory over WinRM with ``Get-CimInstance``."""

    def __init__(self, runner: PowerShellRunner, hostname: str) -> None:
        self.runner = runner
        self.hostname = hostname
        self._open = False

    def open(self) -> None:
        _check_wsman(self.runner, self.hostname)
        self._open = True
        logger.debug("Inventory session opened", hostname=self.hostname)

    def query(self, class_name: str, property_name: str) -> str | None:
        if not self._open:
            raise SessionError("Inventory session to {host} is not open", host=self.hostname)
        value = self.runner.run_json(
            f"Get-CimInstance -ComputerName {quote(self.hostname)} -ClassName {quote(class_name)}"
            f" | Select-Object -First 1 -ExpandProperty {quote(property_name)}"
            " | ConvertTo-Json -Compress"
        )
        if value is None:
            return None
        return str(value)

    def close(self) -> None:
        if self._open:
            self._open = False
            logger.debug("Inventory session closed", hostname=self.hostname)


class PowerShellRemoteSession(RemoteSession):
    """Installer staging and execution through PowerShell remoting."""

    def __init__(self, runner: PowerShellRunner, hostname: str, staging_dir: str) -> None:
        self.runner = runner
        self.hostname = hostname
        self.staging_dir = staging_dir
        self._open = False
        self._staged: list[str] = []

    def open(self) -> None:
        _check_wsman(self.runner, self.hostname)
        self._open = True

    def _require_open(self) -> None:
        if not self._open:
            raise SessionError("Remote session to {host} is not open", host=self.hostname)

    def copy(self, local_path: Path) -> str:
        self._require_open()
        remote_path = str(PureWindowsPath(self.staging_dir) / local_path.name)
        script = "\n".join(
            [
                f"$session = New-PSSession -ComputerName {quote(self.hostname)}",
                "try {",
                "    Invoke-Command -Session $session -ScriptBlock {",
                "        param($dir) New-Item -ItemType Directory -Force -Path $dir | Out-Null",
                f"    }} -ArgumentList {quote(self.staging_dir)}",
                f"    Copy-Item -LiteralPath {quote(local_path)} -Destination {quote(remote_path)}"
                " -ToSession $session -Force",
                "} finally {",
                "    Remove-PSSession $session",
                "}",
            ]
        )
        try:
            self.runner.run(script)
        except ExecutionError as e:
            raise TransferError(
                "Copy of {file} to {host} failed: {error}", file=local_path.name, host=self.hostname, error=str(e)
            ) from e
        self._staged.append(remote_path)
        return remote_path

    def execute(self, remote_path: str, arguments: list[str]) -> int:
        self._require_open()
        script = "\n".join(
            [
                f"Invoke-Command -ComputerName {quote(self.hostname)} -ScriptBlock {{",
                "    param($file, $arguments)",
                "    (Start-Process -FilePath $file -ArgumentList $arguments -Wait -PassThru).ExitCode",
                f"}} -ArgumentList {quote(remote_path)}, {quote_list(arguments)}",
            ]
        )
        output = self.runner.run_output(script).strip()
        try:
            return int(output.splitlines()[-1])
        except (IndexError, ValueError) as e:
            raise ExecutionError(
                "No exit code reported by {host} for {file}", host=self.hostname, file=remote_path
            ) from e

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        if not self._staged:
            return
        staged, self._staged = self._staged, []
        script = "\n".join(
            [
                f"Invoke-Command -ComputerName {quote(self.hostname)} -ScriptBlock {{",
                "    param($paths) Remove-Item -LiteralPath $paths -Force -ErrorAction SilentlyContinue",
                f"}} -ArgumentList (,{quote_list(staged)})",
            ]
        )
        try:
            self.runner.run(script)
        except ExecutionError as e:
            raise SessionError("Closing session to {host} failed: {error}", host=self.hostname, error=str(e)) from e
