"""Metadata fetchers for crates.io, GitHub and the crates.io db dump."""

from collectors.base import BaseFetcher, FetchError
from collectors.crates_io import CratesIoFetcher
from collectors.github import GithubFetcher, GraphQLError, MissingTokenError

__all__ = [
    "BaseFetcher",
    "FetchError",
    "CratesIoFetcher",
    "GithubFetcher",
    "GraphQLError",
    "MissingTokenError",
]
