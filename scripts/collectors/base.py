"""Shared HTTP plumbing for the metadata fetchers."""

import time
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

USER_AGENT = "crate-scraper (https://github.com/crate-scraper/crate-scraper)"


class FetchError(Exception):
    """Raised when remote metadata could not be retrieved or understood."""


class RateLimiter:
    """Simple rate limiter for API requests."""

    def __init__(self, requests_per_hour: int = 60):
        self.delay = 3600 / requests_per_hour
        self.last_request = 0.0

    def wait(self):
        """Wait if necessary to respect rate limit."""
        elapsed = time.time() - self.last_request
        if elapsed < self.delay:
            time.sleep(self.delay - elapsed)
        self.last_request = time.time()


def get_session(retries: int = 3) -> requests.Session:
    """Create a requests session with retry logic."""
    session = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=None,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers["User-Agent"] = USER_AGENT
    return session


class BaseFetcher:
    """Base class for fetchers that talk to one remote API."""

    source_name: str = "unknown"
    timeout: int = 30

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session if session is not None else get_session()

    def _request_json(self, method: str, url: str, **kwargs) -> dict:
        """Issue one request and decode its JSON body.

        Raises:
            FetchError: On transport failures, HTTP error statuses and
                bodies that are not JSON.
        """
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise FetchError(f"{self.source_name} request to {url} failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"{self.source_name} returned invalid JSON: {e}") from e
