"""Configuration data models for DepotPilot."""

import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ServerConfig(BaseModel):
    """Server configuration."""

    # The dashboard talks to the API on this port unless told otherwise
    port: int = 8000
    host: str = "127.0.0.1"


class PathsConfig(BaseModel):
    """Paths configuration."""

    data_dir: Path = Field(default_factory=lambda: Path.home() / ".depotpilot")
    logs_dir: Path | None = None

    @field_validator("data_dir", mode="before")
    @classmethod
    def expand_data_dir(cls, v: str | Path) -> Path:
        """Expand user path for data_dir."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @field_validator("logs_dir", mode="before")
    @classmethod
    def expand_optional_path(cls, v: str | Path | None) -> Path | None:
        """Expand user path for optional paths."""
        if v is None:
            return None
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    def model_post_init(self, __context: object) -> None:
        """Set default subdirectories if not specified."""
        if self.logs_dir is None:
            self.logs_dir = self.data_dir / "logs"


class RepositorySettings(BaseModel):
    """Package repository defaults."""

    # None means "current working directory at startup"
    default_path: Path | None = None
    descriptor_extension: str = ".cva"
    installer_extension: str = ".exe"

    @field_validator("default_path", mode="before")
    @classmethod
    def expand_default_path(cls, v: str | Path | None) -> Path | None:
        """Expand user path for default_path."""
        if v is None or v == "":
            return None
        return Path(v).expanduser()


class LogsConfig(BaseModel):
    """Operator log buffer configuration."""

    capacity: int = Field(default=1000, ge=1)


def _default_powershell() -> str:
    return "powershell.exe" if sys.platform == "win32" else "pwsh"


class RemoteConfig(BaseModel):
    """Remote execution configuration (ping, CIM, PowerShell remoting)."""

    powershell: str = Field(default_factory=_default_powershell)
    ping_timeout: float = 1.0  # seconds, single echo request
    command_timeout: float = 600.0  # seconds, per remote call
    staging_dir: str = r"C:\Windows\Temp\DepotPilot"
    silent_args: list[str] = Field(default_factory=lambda: ["/s", "/q", "/norestart"])


class AdvancedConfig(BaseModel):
    """Advanced configuration."""

    log_level: Literal["INFO", "DEBUG", "TRACE"] = "INFO"


class AppConfig(BaseModel):
    """Application configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    repository: RepositorySettings = Field(default_factory=RepositorySettings)
    logs: LogsConfig = Field(default_factory=LogsConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)
