"""Repository related models."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

OnMissingPolicy = Literal["Fail", "LogAndContinue"]
CacheMode = Literal["Disable", "Enable"]
ReportFormat = Literal["CSV", "JSon", "XML", "ExcelCSV"]

ON_MISSING_VALUES: tuple[str, ...] = ("Fail", "LogAndContinue")
CACHE_MODE_VALUES: tuple[str, ...] = ("Disable", "Enable")
REPORT_FORMAT_VALUES: tuple[str, ...] = ("CSV", "JSon", "XML", "ExcelCSV")


class RepositorySettingsSnapshot(BaseModel):
    """Repository settings, keyed by the vendor setting names."""

    OnRemoteFileNotFound: OnMissingPolicy = "Fail"
    OfflineCacheMode: CacheMode = "Disable"
    RepositoryReport: ReportFormat = "CSV"


class RepositoryState(BaseModel):
    """Point-in-time copy of the repository configuration."""

    path: Path
    settings: RepositorySettingsSnapshot = Field(default_factory=RepositorySettingsSnapshot)


class RepositoryFilter(BaseModel):
    """A platform filter applied to the repository sync."""

    platform: str
    os: str = "*"
    os_ver: str | None = None
    category: list[str] = Field(default_factory=list)
    release_type: list[str] = Field(default_factory=list)
    characteristic: list[str] = Field(default_factory=list)
    prefer_ltsc: bool = False


class RepositoryPackage(BaseModel):
    """An installer in the repository and the platforms its descriptor lists."""

    filename: str
    descriptor: str
    platform_ids: frozenset[str] = frozenset()
