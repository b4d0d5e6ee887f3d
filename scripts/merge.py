"""Merge input entries with crates.io metadata."""

import re
import sys
from typing import Optional, Protocol, TypeVar
from urllib.parse import urlsplit

from collectors.base import FetchError
from models import (
    CategoryInputCrateInfo,
    Crate,
    CratesIoInputCrateInfo,
    GeneratedCrateInfo,
    ManualCrateInfo,
)

T = TypeVar("T")

DOCS_URL = "https://docs.rs/crate/{name}"
GITHUB_HOST = "github.com"


class InvalidRepositoryUrl(ValueError):
    """Raised for GitHub URLs that do not name an owner and a repository."""


class CrateRegistry(Protocol):
    def get_crate_data(self, name: str) -> Crate: ...


def coalesce(primary: Optional[T], fallback: Optional[T]) -> Optional[T]:
    """Return primary unless it is None."""
    return primary if primary is not None else fallback


def apply_overrides(crate: Crate, entry: CratesIoInputCrateInfo) -> Crate:
    """Fill fields crates.io left empty with the entry's overrides.

    Values from crates.io always win. A crate without documentation falls
    back to its docs.rs page.
    """
    repository = str(entry.repository) if entry.repository is not None else None
    documentation = coalesce(crate.documentation, entry.documentation)

    return crate.model_copy(
        update={
            "license": coalesce(crate.license, entry.license),
            "documentation": coalesce(documentation, DOCS_URL.format(name=crate.name)),
            "repository": coalesce(crate.repository, repository),
            "description": coalesce(crate.description, entry.description),
        }
    )


def from_crates_io(entry: CratesIoInputCrateInfo, registry: CrateRegistry) -> GeneratedCrateInfo:
    generated = GeneratedCrateInfo(topics=list(entry.topics))

    if entry.name is None:
        return generated

    try:
        crate = registry.get_crate_data(entry.name)
    except FetchError as e:
        print(f"Error getting crate data for {entry.name} - {e}", file=sys.stderr)
        return generated

    generated.krate = apply_overrides(crate, entry)
    return generated


def fill_manually(entry: ManualCrateInfo) -> GeneratedCrateInfo:
    return GeneratedCrateInfo(
        topics=list(entry.topics),
        score=entry.score,
        krate=entry.krate,
        repo=entry.repo,
    )


def merge_entry(entry, registry: CrateRegistry) -> GeneratedCrateInfo:
    """Produce the generated entry for one crate input entry.

    Manual entries pass through untouched. crates.io entries are fetched and
    merged; a failed fetch is reported and leaves the metadata empty.
    """
    if isinstance(entry, ManualCrateInfo):
        return fill_manually(entry)
    if isinstance(entry, CratesIoInputCrateInfo):
        return from_crates_io(entry, registry)
    if isinstance(entry, CategoryInputCrateInfo):
        raise TypeError(f"{entry} must be expanded before merging")
    raise TypeError(f"Unknown input entry type: {type(entry).__name__}")


def github_repo_from_url(url: str) -> Optional[tuple[str, str]]:
    """Extract (owner, repo) from a GitHub repository URL.

    Returns None for URLs hosted anywhere but github.com. The path is split on
    both '/' and '.' so a trailing '.git' is dropped.

    Raises:
        InvalidRepositoryUrl: If a github.com URL has fewer than two path
            segments.
    """
    try:
        parts = urlsplit(url)
        host = parts.hostname
    except ValueError:
        return None

    if host != GITHUB_HOST:
        return None

    segments = re.split(r"[/.]", parts.path)
    if len(segments) < 3:
        raise InvalidRepositoryUrl(f"Cannot find owner and repository in {url}")
    return segments[1], segments[2]
