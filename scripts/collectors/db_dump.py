"""crates.io database dump download and loading.

The dump is a gzipped tarball with one directory named after the export
time, containing ``data/<table>.csv`` files. Only the three tables needed
for category discovery are read.
"""

import csv
import io
import sys
import tarfile
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import requests
from pydantic import BaseModel, Field, field_validator

from collectors.base import FetchError, get_session

DB_DUMP_URL = "https://static.crates.io/db-dump.tar.gz"
DB_DUMP_PATH = Path("db-dump.tar.gz")
DB_DUMP_MAX_AGE = 24 * 60 * 60

# Allow for the very large readme column in crates.csv
csv.field_size_limit(2**31 - 1)


def _empty_to_none(value):
    return None if value == "" else value


class CrateRow(BaseModel):
    """Row of the crates table."""

    id: int
    name: str
    description: str = ""
    documentation: Optional[str] = None
    homepage: Optional[str] = None
    repository: Optional[str] = None
    downloads: int = 0
    created_at: datetime = Field(description="Naive local time, or UTC with a +00 offset")
    updated_at: datetime = Field(description="Naive local time, or UTC with a +00 offset")

    @field_validator("documentation", "homepage", "repository", mode="before")
    @classmethod
    def empty_is_missing(cls, value):
        return _empty_to_none(value)

    @field_validator("downloads", mode="before")
    @classmethod
    def missing_downloads(cls, value):
        return value or 0

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def expand_utc_suffix(cls, value):
        # Newer dumps mark UTC timestamps with a bare "+00" offset; older ones
        # are naive local times
        if isinstance(value, str) and value.endswith("+00"):
            return value + ":00"
        return value


class CategoryRow(BaseModel):
    """Row of the categories table."""

    id: int
    category: str = Field(description="Category label, e.g. 'Science::Robotics'")
    description: str = ""
    slug: str = ""
    crates_cnt: int = 0


class CrateCategoryRow(BaseModel):
    """Row of the crates_categories link table."""

    category_id: int
    crate_id: int


@dataclass
class DbDump:
    """Decoded tables of a database dump."""

    crates: list[CrateRow] = field(default_factory=list)
    categories: list[CategoryRow] = field(default_factory=list)
    crates_categories: list[CrateCategoryRow] = field(default_factory=list)


TABLES = {
    "crates": CrateRow,
    "categories": CategoryRow,
    "crates_categories": CrateCategoryRow,
}


def needs_download(path: Path, max_age: float = DB_DUMP_MAX_AGE) -> bool:
    """Return True if the dump is missing or older than max_age seconds."""
    try:
        modified = path.stat().st_mtime
    except OSError:
        return True
    return time.time() - modified >= max_age


def ensure_db_dump(
    path: Union[str, Path] = DB_DUMP_PATH,
    session: Optional[requests.Session] = None,
    max_age: float = DB_DUMP_MAX_AGE,
) -> Path:
    """Make sure a fresh enough database dump exists at path.

    Raises:
        FetchError: If the dump has to be downloaded and the download fails.
    """
    path = Path(path)
    if not needs_download(path, max_age):
        return path

    print("Downloading crates.io db dump, this will take a while...", file=sys.stderr)
    session = session if session is not None else get_session()
    tmp_path = path.with_name(path.name + ".tmp")

    try:
        with session.get(DB_DUMP_URL, stream=True, timeout=300) as response:
            response.raise_for_status()
            with open(tmp_path, "wb") as f:
                for chunk in response.iter_content(chunk_size=1024 * 1024):
                    f.write(chunk)
    except requests.RequestException as e:
        tmp_path.unlink(missing_ok=True)
        raise FetchError(f"Failed to download db dump: {e}") from e

    tmp_path.replace(path)
    return path


def load_db_dump(path: Union[str, Path] = DB_DUMP_PATH) -> DbDump:
    """Load the crates, categories and crates_categories tables.

    Raises:
        FileNotFoundError: If the archive does not contain a required table.
    """
    dump = DbDump()

    with tarfile.open(path, "r:gz") as archive:
        members = {}
        for member in archive:
            parts = Path(member.name).parts
            if len(parts) >= 2 and parts[-2] == "data" and parts[-1].endswith(".csv"):
                table = parts[-1][: -len(".csv")]
                if table in TABLES:
                    members[table] = member

        for table, row_model in TABLES.items():
            member = members.get(table)
            if member is None:
                raise FileNotFoundError(f"{table}.csv not found in {path}")

            f = archive.extractfile(member)
            reader = csv.DictReader(io.TextIOWrapper(f, encoding="utf-8", newline=""))
            rows = getattr(dump, table)
            for row in reader:
                rows.append(row_model.model_validate(row))

    return dump
