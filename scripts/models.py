"""Data models for crate metadata scraping."""

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, TypeAdapter, field_validator


def _assume_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CrateLinks(BaseModel):
    """API links attached to a crates.io crate record."""

    owner_team: str
    owner_user: str
    owners: str
    reverse_dependencies: str
    version_downloads: str
    versions: Optional[str] = None


class Crate(BaseModel):
    """Crate metadata in the shape returned by the crates.io API."""

    id: str = Field(default="", description="crates.io identifier (usually the name)")
    name: str = Field(min_length=1, description="Crate name")
    description: Optional[str] = None
    license: Optional[str] = Field(default=None, description="SPDX license expression")
    documentation: Optional[str] = None
    homepage: Optional[str] = None
    repository: Optional[str] = Field(
        default=None, description="Repository URL, re-parsed before GitHub lookups"
    )
    downloads: int = Field(default=0, description="All-time download count")
    recent_downloads: Optional[int] = Field(
        default=None, description="Downloads in the last 90 days"
    )
    categories: Optional[list[str]] = None
    keywords: Optional[list[str]] = None
    versions: Optional[list[int]] = None
    max_version: Optional[str] = None
    links: Optional[CrateLinks] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = Field(
        default=None, description="Last publish time, used as an activity signal"
    )
    exact_match: Optional[bool] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _assume_utc(value)


class RepoData(BaseModel):
    """Activity metadata for a GitHub repository."""

    name: str = Field(description="Repository in owner/repo form")
    stargazers_count: int = Field(ge=0)
    last_commit: datetime = Field(description="Time of the last push")
    contributor_count: Optional[int] = Field(default=None, ge=0)
    open_issues_count: Optional[int] = Field(default=None, ge=0)

    @field_validator("last_commit")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return _assume_utc(value)


class CratesIoInputCrateInfo(BaseModel):
    """Input entry resolved through crates.io, with manual overrides."""

    kind: Literal["CratesIo", "crates-io"] = "CratesIo"
    name: Optional[str] = None
    topics: list[str] = Field(default_factory=list)

    # Overridable crate fields, used only where crates.io has no value
    documentation: Optional[str] = None
    repository: Optional[AnyHttpUrl] = None
    license: Optional[str] = None
    description: Optional[str] = None

    def __str__(self) -> str:
        if self.name:
            return f"{self.name} from crates.io"
        if self.repository:
            return f"{self.repository} from source code repository"
        return f"Invalid entry: {self!r}"


class ManualCrateInfo(BaseModel):
    """Input entry whose metadata is supplied in full by the author."""

    kind: Literal["Manual", "manual"] = "Manual"
    topics: list[str] = Field(default_factory=list)
    score: Optional[int] = None
    krate: Optional[Crate] = Field(default=None, alias="crate")
    repo: Optional[RepoData] = None

    model_config = ConfigDict(populate_by_name=True)

    def __str__(self) -> str:
        if self.krate:
            name = self.krate.name
        elif self.repo:
            name = self.repo.name
        else:
            name = "unknown crate name"
        return f"{name} from populated manually"


class CategoryInputCrateInfo(BaseModel):
    """Request to discover every crate in a crates.io category."""

    kind: Literal["Category", "category"] = "Category"
    name: str = Field(min_length=1, description="Category label, e.g. 'Science::Robotics'")

    def __str__(self) -> str:
        return f"category {self.name}"


InputCrateInfo = Annotated[
    Union[CratesIoInputCrateInfo, ManualCrateInfo, CategoryInputCrateInfo],
    Field(discriminator="kind"),
]

input_list_adapter = TypeAdapter(list[InputCrateInfo])


class GeneratedCrateInfo(BaseModel):
    """One entry of the generated dataset."""

    topics: list[str] = Field(default_factory=list)
    score: Optional[int] = None
    krate: Optional[Crate] = Field(default=None, alias="meta")
    repo: Optional[RepoData] = None

    model_config = ConfigDict(populate_by_name=True)

    def to_output(self) -> dict:
        """Render as JSON-compatible data, omitting absent meta and repo."""
        data = self.model_dump(mode="json", by_alias=True)
        for key in ("meta", "repo"):
            if data[key] is None:
                del data[key]
        return data
