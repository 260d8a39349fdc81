"""API models for repository operations."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from depotpilot.models.repository import RepositoryFilter, RepositorySettingsSnapshot


class Envelope(BaseModel):
    """Common response shape: every endpoint reports success and a message."""

    success: bool = True
    message: str = ""


class PathRequest(BaseModel):
    path: str


class PathResponse(Envelope):
    path: str


class LogsResponse(Envelope):
    logs: list[str] = []
    cursor: int = 0


class TaskInfo(BaseModel):
    id: int
    kind: str
    state: str
    created_at: str
    started_at: str | None = None
    finished_at: str | None = None
    error: str | None = None


class TasksResponse(Envelope):
    tasks: list[TaskInfo] = []


class InfoResponse(Envelope):
    info: str
    settings: RepositorySettingsSnapshot


class SettingsRequest(BaseModel):
    """Settings to change. Omitted fields keep their current value."""

    missing: str | None = None
    cache: str | None = None
    report: str | None = None


class SyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ref_url: str | None = Field(default=None, validation_alias=AliasChoices("refUrl", "ref_url"))


class TaskCreatedResponse(Envelope):
    task_id: int


class FilterRequest(BaseModel):
    """
    Repository filter as sent by the dashboard.

    Field names arrive in PascalCase; camelCase and snake_case are accepted
    too. List fields also accept a single string.
    """

    platform: str = Field(validation_alias=AliasChoices("Platform", "platform"))
    os: str = Field(default="*", validation_alias=AliasChoices("Os", "os"))
    os_ver: str | None = Field(default=None, validation_alias=AliasChoices("OsVer", "osVer", "os_ver"))
    category: list[str] = Field(default_factory=list, validation_alias=AliasChoices("Category", "category"))
    release_type: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("ReleaseType", "releaseType", "release_type")
    )
    characteristic: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("Characteristic", "characteristic")
    )
    prefer_ltsc: bool = Field(
        default=False, validation_alias=AliasChoices("PreferLtsc", "PreferLTSC", "preferLtsc", "prefer_ltsc")
    )

    @field_validator("category", "release_type", "characteristic", mode="before")
    @classmethod
    def split_single_value(cls, v: object) -> object:
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @field_validator("os", mode="before")
    @classmethod
    def default_os(cls, v: object) -> object:
        if v is None or (isinstance(v, str) and not v.strip()):
            return "*"
        return v

    def to_filter(self) -> RepositoryFilter:
        return RepositoryFilter(**self.model_dump())
