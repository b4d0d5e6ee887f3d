"""Best-effort on-disk cache for raw API responses.

Entries are stored as ``<root>/<namespace>/<key>.json`` and never expire.
The cache is advisory: a miss, an unreadable file and a failed write all
fall back to a live fetch on the caller's side.
"""

import json
import os
import re
from pathlib import Path
from typing import Optional, Union

# Cached responses live next to the other collected data
CACHE_DIR = Path(__file__).parent.parent / "data" / ".cache"

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def default_cache_dir() -> Path:
    """Cache root, overridable with SCRAPER_CACHE_DIR."""
    override = os.environ.get("SCRAPER_CACHE_DIR")
    return Path(override) if override else CACHE_DIR


class DiskCache:
    """Read-through cache mapping (namespace, key) to a JSON blob."""

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = Path(root) if root is not None else default_cache_dir()

    def path(self, namespace: str, key: str) -> Path:
        """Return the file path backing a cache entry."""
        safe_key = _UNSAFE_KEY_CHARS.sub("_", key)
        return self.root / namespace / f"{safe_key}.json"

    def get(self, namespace: str, key: str) -> Optional[dict]:
        """Return the cached blob, or None on a miss or unreadable entry."""
        try:
            with open(self.path(namespace, key), encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError):
            return None

    def put(self, namespace: str, key: str, blob: dict) -> bool:
        """Store a blob. Returns False if it could not be written."""
        path = self.path(namespace, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(blob, f, indent=2)
        except (OSError, TypeError, ValueError):
            return False
        return True
