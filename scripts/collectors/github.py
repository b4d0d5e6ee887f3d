"""GitHub repository activity fetcher using the GraphQL API."""

import os
from typing import Optional

import requests
from pydantic import ValidationError

from cache import DiskCache
from collectors.base import BaseFetcher, FetchError
from models import RepoData

REPO_QUERY = """
query RepoActivity($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    stargazers {
      totalCount
    }
    collaborators {
      totalCount
    }
    issues(states: OPEN) {
      totalCount
    }
    pushedAt
  }
}
"""


class MissingTokenError(RuntimeError):
    """Raised when no GitHub token is configured."""


class GraphQLError(FetchError):
    """Raised when GitHub answers with a GraphQL error list."""

    def __init__(self, errors: list):
        self.errors = errors
        first = errors[0] if errors and isinstance(errors[0], dict) else {}
        super().__init__(first.get("message") or "unknown GraphQL error")


class RepoDataParseError(FetchError):
    """Raised when a GraphQL response lacks the expected repository fields."""


def _dig(value, *keys):
    for key in keys:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def repo_data_from_graphql(name: str, payload: dict) -> RepoData:
    """Build RepoData from a raw ``data.repository`` GraphQL response.

    Raises:
        RepoDataParseError: If a required field is missing or malformed.
    """
    repo = _dig(payload, "data", "repository")
    if not isinstance(repo, dict):
        raise RepoDataParseError(f"No repository data for {name}")

    try:
        return RepoData(
            name=name,
            stargazers_count=_dig(repo, "stargazers", "totalCount"),
            last_commit=repo.get("pushedAt"),
            contributor_count=_dig(repo, "collaborators", "totalCount"),
            open_issues_count=_dig(repo, "issues", "totalCount"),
        )
    except ValidationError as e:
        raise RepoDataParseError(f"Malformed repository data for {name}: {e}") from e


class GithubFetcher(BaseFetcher):
    """Fetch stars, collaborators, open issues and last push for a repo."""

    source_name = "github"

    GRAPHQL_URL = "https://api.github.com/graphql"

    def __init__(
        self,
        token: Optional[str] = None,
        cache: Optional[DiskCache] = None,
        session: Optional[requests.Session] = None,
    ):
        token = token or os.environ.get("GITHUB_TOKEN")
        if not token:
            raise MissingTokenError("GITHUB_TOKEN has not been set")

        super().__init__(session)
        self.cache = cache if cache is not None else DiskCache()
        self.headers = {"Authorization": f"bearer {token}"}

    def fetch_remote_repo_data(self, owner: str, repo: str) -> dict:
        """Run the repository query and return the raw response body.

        Raises:
            GraphQLError: If GitHub reports errors for the query.
            FetchError: On transport or authentication failures.
        """
        body = {"query": REPO_QUERY, "variables": {"owner": owner, "name": repo}}
        payload = self._request_json("POST", self.GRAPHQL_URL, json=body, headers=self.headers)

        if not isinstance(payload, dict):
            raise FetchError(f"Unexpected GraphQL response for {owner}/{repo}")
        if payload.get("errors"):
            raise GraphQLError(payload["errors"])
        return payload

    def get_repo_data(self, owner: str, repo: str) -> RepoData:
        """Return activity data for owner/repo, using the disk cache."""
        key = f"{owner}--{repo}"

        payload = self.cache.get(self.source_name, key)
        if payload is None:
            payload = self.fetch_remote_repo_data(owner, repo)
            self.cache.put(self.source_name, key, payload)

        return repo_data_from_graphql(f"{owner}/{repo}", payload)
