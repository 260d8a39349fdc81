"""Run PowerShell scripts and map their output streams onto log stream kinds.

PowerShell has six output streams but a child process only exposes stdout and
stderr. Scripts are wrapped so that every record is redirected into the
success stream and printed with a ``TAG|`` prefix naming its origin.
"""

import json
import subprocess
from collections.abc import Callable
from functools import lru_cache
from typing import Any

from depotpilot.exceptions import ExecutionError
from depotpilot.logger import get_logger
from depotpilot.models.tasks import StreamKind
from depotpilot.utils.subprocess_executor import SubprocessExecutor

logger = get_logger(__name__)

Emit = Callable[[StreamKind, str], None]

STREAM_TAGS: dict[str, StreamKind] = {
    "OUTPUT": StreamKind.OUTPUT,
    "VERBOSE": StreamKind.VERBOSE,
    "WARNING": StreamKind.WARNING,
    "ERROR": StreamKind.ERROR,
    "INFO": StreamKind.INFO,
}

_WRAPPER = """\
[Console]::OutputEncoding = [System.Text.Encoding]::UTF8
$ErrorActionPreference = 'Stop'
$ProgressPreference = 'SilentlyContinue'
$VerbosePreference = 'Continue'
try {{
    & {{
{body}
    }} *>&1 | ForEach-Object {{
        if ($_ -is [System.Management.Automation.ErrorRecord]) {{ "ERROR|$($_.ToString())" }}
        elseif ($_ -is [System.Management.Automation.WarningRecord]) {{ "WARNING|$($_.Message)" }}
        elseif ($_ -is [System.Management.Automation.VerboseRecord]) {{ "VERBOSE|$($_.Message)" }}
        elseif ($_ -is [System.Management.Automation.DebugRecord]) {{ "VERBOSE|$($_.Message)" }}
        elseif ($_ -is [System.Management.Automation.InformationRecord]) {{ "INFO|$($_.MessageData)" }}
        else {{ $_ | Out-String -Stream | Where-Object {{ $_ -ne '' }} | ForEach-Object {{ "OUTPUT|$_" }} }}
    }}
}} catch {{
    "ERROR|$($_.Exception.Message)"
    exit 1
}}
"""


def quote(value: object) -> str:
    """Quote a value as a PowerShell single-quoted string literal."""
    return "'" + str(value).replace("'", "''") + "'"


def quote_list(values: list[str]) -> str:
    """Quote values as a PowerShell array literal."""
    return "@(" + ", ".join(quote(v) for v in values) + ")"


def wrap_script(body: str) -> str:
    indented = "\n".join(f"        {line}" if line else line for line in body.splitlines())
    return _WRAPPER.format(body=indented)


def parse_tagged_line(line: str) -> tuple[StreamKind, str]:
    """Split a ``TAG|message`` line. Untagged lines count as normal output."""
    tag, sep, message = line.partition("|")
    if sep and tag in STREAM_TAGS:
        return STREAM_TAGS[tag], message
    return StreamKind.OUTPUT, line


class PowerShellRunner:
    """Executes wrapped PowerShell scripts through ``SubprocessExecutor``."""

    def __init__(self, executable: str, timeout: float | None = None) -> None:
        self.executable = executable
        self.timeout = timeout

    def command(self, body: str) -> list[str]:
        return [
            self.executable,
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy",
            "Bypass",
            "-Command",
            wrap_script(body),
        ]

    def stream(self, body: str, emit: Emit) -> None:
        """Run ``body`` and forward each record to ``emit`` as it arrives.

        Raises:
            ExecutionError: If PowerShell cannot be started or exits non-zero
        """
        try:
            for line in SubprocessExecutor.iter_lines_sync(*self.command(body)):
                if not line:
                    continue
                stream, message = parse_tagged_line(line)
                emit(stream, message)
        except FileNotFoundError as e:
            raise ExecutionError("PowerShell executable not found: {exe}", exe=self.executable) from e
        except OSError as e:
            raise ExecutionError("Cannot start PowerShell ({exe}): {error}", exe=self.executable, error=str(e)) from e
        except subprocess.CalledProcessError as e:
            raise ExecutionError(
                "PowerShell exited with code {code}", exit_code=e.returncode, code=e.returncode
            ) from e

    def run(self, body: str) -> list[tuple[StreamKind, str]]:
        """Run ``body`` to completion and return its tagged records.

        Raises:
            ExecutionError: If PowerShell cannot be started, times out or exits non-zero
        """
        try:
            result = SubprocessExecutor.run_sync(*self.command(body), timeout=self.timeout)
        except FileNotFoundError as e:
            raise ExecutionError("PowerShell executable not found: {exe}", exe=self.executable) from e
        except OSError as e:
            raise ExecutionError("Cannot start PowerShell ({exe}): {error}", exe=self.executable, error=str(e)) from e
        except subprocess.TimeoutExpired as e:
            raise ExecutionError("PowerShell call timed out after {timeout}s", timeout=self.timeout) from e

        text = result.stdout.decode("utf-8", errors="replace")
        records = [parse_tagged_line(line) for line in text.splitlines() if line.strip()]

        if result.returncode != 0:
            errors = [msg for stream, msg in records if stream == StreamKind.ERROR]
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            detail = "; ".join(errors) or stderr or f"exit code {result.returncode}"
            raise ExecutionError("{detail}", exit_code=result.returncode, detail=detail)

        return records

    def run_output(self, body: str) -> str:
        """Run ``body`` and return its normal output joined by newlines."""
        return "\n".join(msg for stream, msg in self.run(body) if stream == StreamKind.OUTPUT)

    def run_json(self, body: str) -> Any:  # noqa: ANN401
        """Run ``body``, which must print one ``ConvertTo-Json`` document."""
        output = self.run_output(body).strip()
        if not output:
            return None
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise ExecutionError("Unexpected PowerShell output: {output}", output=output[:200]) from e


@lru_cache
def get_powershell_runner() -> PowerShellRunner:
    """Get or initialize the PowerShell runner configured for this process (singleton)."""
    from depotpilot.config import get_config

    remote = get_config().remote
    return PowerShellRunner(remote.powershell, timeout=remote.command_timeout)
