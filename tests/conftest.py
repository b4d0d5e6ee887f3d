"""Shared fixtures for the scraper tests."""

from datetime import datetime, timezone

import pytest
import requests

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Records requests and replays canned responses keyed by URL."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.get(url)
        if response is None:
            return FakeResponse({"errors": [{"detail": "Not Found"}]}, status_code=404)
        if isinstance(response, Exception):
            raise response
        return response


def graphql_payload(stars=42, pushed_at="2024-05-20T08:00:00Z", collaborators=3, issues=7):
    return {
        "data": {
            "repository": {
                "stargazers": {"totalCount": stars},
                "collaborators": {"totalCount": collaborators},
                "issues": {"totalCount": issues},
                "pushedAt": pushed_at,
            }
        }
    }


def crate_payload(name="serde", **fields):
    crate = {
        "id": name,
        "name": name,
        "description": "A crate",
        "documentation": None,
        "homepage": None,
        "repository": None,
        "downloads": 1000,
        "recent_downloads": 500,
        "categories": ["encoding"],
        "keywords": ["serde"],
        "versions": [2, 1],
        "max_version": "1.0.1",
        "newest_version": "1.0.1",
        "links": {
            "owner_team": f"/api/v1/crates/{name}/owner_team",
            "owner_user": f"/api/v1/crates/{name}/owner_user",
            "owners": f"/api/v1/crates/{name}/owners",
            "reverse_dependencies": f"/api/v1/crates/{name}/reverse_dependencies",
            "version_downloads": f"/api/v1/crates/{name}/downloads",
            "versions": None,
        },
        "created_at": "2015-01-01T00:00:00Z",
        "updated_at": "2024-05-01T00:00:00Z",
        "exact_match": False,
    }
    crate.update(fields)
    return {
        "crate": crate,
        "versions": [
            {"id": 2, "num": "1.0.1", "license": "MIT OR Apache-2.0"},
            {"id": 1, "num": "1.0.0", "license": "MIT"},
        ],
    }


@pytest.fixture(autouse=True)
def no_rate_limit(monkeypatch):
    monkeypatch.setattr("collectors.base.time.sleep", lambda seconds: None)
