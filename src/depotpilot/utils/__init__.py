"""Utilities for DepotPilot."""

from depotpilot.utils.powershell import (
    PowerShellRunner,
    get_powershell_runner,
    parse_tagged_line,
    quote,
    quote_list,
)
from depotpilot.utils.subprocess_executor import SubprocessExecutor

__all__ = [
    "PowerShellRunner",
    "SubprocessExecutor",
    "get_powershell_runner",
    "parse_tagged_line",
    "quote",
    "quote_list",
]
