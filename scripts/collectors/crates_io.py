"""crates.io registry fetcher."""

from typing import Optional

import requests
from pydantic import ValidationError

from collectors.base import BaseFetcher, FetchError, RateLimiter
from models import Crate


class CratesIoFetcher(BaseFetcher):
    """Fetch crate metadata from the crates.io API."""

    source_name = "crates.io"

    CRATE_URL = "https://crates.io/api/v1/crates/{name}"

    def __init__(self, session: Optional[requests.Session] = None):
        super().__init__(session)
        # crates.io crawler policy: at most one request per second
        self.rate_limiter = RateLimiter(requests_per_hour=3600)

    def get_crate_data(self, name: str) -> Crate:
        """Fetch metadata for one crate.

        Args:
            name: Crate name as published on crates.io.

        Returns:
            Crate record. ``license`` is taken from the newest version, since
            the crate object itself does not carry one.

        Raises:
            FetchError: If the request fails or the response is malformed.
        """
        self.rate_limiter.wait()
        data = self._request_json("GET", self.CRATE_URL.format(name=name))

        crate_data = data.get("crate")
        if not isinstance(crate_data, dict):
            raise FetchError(f"crates.io response for {name} has no crate object")

        if crate_data.get("license") is None:
            crate_data = {**crate_data, "license": newest_license(crate_data, data.get("versions"))}

        try:
            return Crate.model_validate(crate_data)
        except ValidationError as e:
            raise FetchError(f"Unexpected crates.io data for {name}: {e}") from e


def newest_license(crate_data: dict, versions: Optional[list]) -> Optional[str]:
    """Return the license of the crate's newest version, if known."""
    if not versions:
        return None

    newest = crate_data.get("newest_version") or crate_data.get("max_version")
    for version in versions:
        if version.get("num") == newest:
            return version.get("license")
    # crates.io lists versions newest first
    return versions[0].get("license")
