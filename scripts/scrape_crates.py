#!/usr/bin/env python3
"""Scrape crate metadata from crates.io and GitHub and score each crate.

Reads a YAML list of crate entries, merges crates.io metadata with manual
overrides, attaches GitHub activity data and writes the generated dataset
as JSON to stdout and as YAML to _data/crates_generated.yaml.

Usage:
    GITHUB_TOKEN=... python scrape_crates.py _data/crates.yaml
    python scrape_crates.py _data/crates.yaml --cache-dir /tmp/cache
"""

import argparse
import json
import sys
import tarfile
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

import yaml
from pydantic import ValidationError
from tabulate import tabulate

# Add scripts directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from cache import DiskCache
from categories import CategoryIndex, SnapshotError
from collectors.base import FetchError, get_session
from collectors.crates_io import CratesIoFetcher
from collectors.db_dump import DB_DUMP_PATH, ensure_db_dump, load_db_dump
from collectors.github import GithubFetcher, MissingTokenError
from merge import CrateRegistry, InvalidRepositoryUrl, github_repo_from_url, merge_entry
from models import CategoryInputCrateInfo, GeneratedCrateInfo, input_list_adapter
from scoring import update_score

OUTPUT_PATH = Path("_data") / "crates_generated.yaml"


class InputError(Exception):
    """Raised when the input document cannot be read or validated."""


def read_input(path) -> list:
    """Read and validate the YAML list of input entries."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return input_list_adapter.validate_python(data or [])
    except (OSError, UnicodeDecodeError, yaml.YAMLError, ValidationError) as e:
        raise InputError(f"Error reading {path}: {e}") from e


def process_entry(
    entry,
    registry: CrateRegistry,
    github: GithubFetcher,
    now: Optional[datetime] = None,
) -> GeneratedCrateInfo:
    """Merge one entry, attach its GitHub data and score it."""
    generated = merge_entry(entry, registry)

    repository = generated.krate.repository if generated.krate else None
    github_repo = github_repo_from_url(repository) if repository else None
    if github_repo:
        owner, repo = github_repo
        try:
            generated.repo = github.get_repo_data(owner, repo)
        except FetchError as e:
            print(f"Error getting Github repo data for {owner}/{repo} - {e}", file=sys.stderr)

    return update_score(generated, now)


def discover_categories(requested: list[str], db_dump_path) -> list:
    """Load the database dump and return (category, entries) pairs."""
    path = ensure_db_dump(db_dump_path)

    print("Loading all categories from database", file=sys.stderr)
    index = CategoryIndex.from_dump(load_db_dump(path))
    return index.discover(requested)


def scrape(
    entries: list,
    registry: CrateRegistry,
    github: GithubFetcher,
    db_dump_path=DB_DUMP_PATH,
    now: Optional[datetime] = None,
) -> list[GeneratedCrateInfo]:
    """Process crate entries in order, then every crate of the requested categories."""
    requested = [e.name for e in entries if isinstance(e, CategoryInputCrateInfo)]
    crate_entries = [e for e in entries if not isinstance(e, CategoryInputCrateInfo)]

    generated = []
    for entry in crate_entries:
        print(f"Processing {entry}", file=sys.stderr)
        generated.append(process_entry(entry, registry, github, now))

    if requested:
        for category, discovered in discover_categories(requested, db_dump_path):
            print(
                f"Category {category.category} has {len(discovered)} crates",
                file=sys.stderr,
            )
            for entry in discovered:
                print(f"Processing {entry.krate.name}", file=sys.stderr)
                generated.append(process_entry(entry, registry, github, now))

    return generated


def write_output(
    generated: list[GeneratedCrateInfo],
    yaml_path: Path = OUTPUT_PATH,
    stream: Optional[TextIO] = None,
) -> None:
    """Write the dataset as YAML to yaml_path, then as JSON to stream (stdout).

    Nothing reaches the stream if the YAML file cannot be written.
    """
    stream = stream if stream is not None else sys.stdout
    data = [g.to_output() for g in generated]

    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)
    with open(yaml_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)

    stream.write(json.dumps(data))
    stream.write("\n")


def print_summary(generated: list[GeneratedCrateInfo], limit: int = 20) -> None:
    """Print the highest-scoring crates to stderr."""
    ranked = sorted(generated, key=lambda g: g.score or 0, reverse=True)[:limit]
    rows = [
        [
            g.krate.name if g.krate else (g.repo.name if g.repo else "-"),
            g.score,
            g.krate.recent_downloads if g.krate else None,
            g.repo.stargazers_count if g.repo else None,
            ", ".join(g.topics),
        ]
        for g in ranked
    ]
    print(
        tabulate(rows, headers=["Crate", "Score", "Recent downloads", "Stars", "Topics"]),
        file=sys.stderr,
    )
    print(f"\nTotal: {len(generated)} crates generated", file=sys.stderr)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Scrape crate metadata from crates.io and GitHub",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s _data/crates.yaml                      # Scrape listed crates
    %(prog)s _data/crates.yaml --summary-limit 50   # Show a longer summary
        """,
    )
    parser.add_argument("input", type=Path, help="YAML file listing crates and categories")
    parser.add_argument(
        "--output",
        type=Path,
        default=OUTPUT_PATH,
        help=f"YAML output file (default: {OUTPUT_PATH})",
    )
    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Directory for cached GitHub responses (default: data/.cache)",
    )
    parser.add_argument(
        "--db-dump",
        type=Path,
        default=DB_DUMP_PATH,
        help=f"Location of the crates.io db dump (default: {DB_DUMP_PATH})",
    )
    parser.add_argument(
        "--summary-limit",
        type=int,
        default=20,
        help="Number of crates shown in the summary table (default: 20)",
    )

    args = parser.parse_args(argv)

    try:
        session = get_session()
        github = GithubFetcher(cache=DiskCache(args.cache_dir), session=session)
        entries = read_input(args.input)
        generated = scrape(entries, CratesIoFetcher(session), github, args.db_dump)
        write_output(generated, args.output)
    except (
        InputError,
        MissingTokenError,
        InvalidRepositoryUrl,
        SnapshotError,
        FetchError,
        ValidationError,
        tarfile.TarError,
        OSError,
    ) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print_summary(generated, args.summary_limit)
    return 0


if __name__ == "__main__":
    sys.exit(main())
