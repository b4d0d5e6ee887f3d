"""Activity-weighted popularity score for generated entries."""

import math
from datetime import datetime, timezone
from typing import Optional

from models import GeneratedCrateInfo

# Days without activity up to which a crate counts as maintained, and the
# matching download multipliers
MAINTAINED_DAYS = 180
UNCERTAIN_DAYS = 365
MAINTAINED = 1.0
UNCERTAIN = 0.5
UNMAINTAINED = 0.1


def last_activity(entry: GeneratedCrateInfo) -> Optional[datetime]:
    """Return the later of the last crates.io publish and the last push.

    Only GitHub repositories report a last push, so crates hosted elsewhere
    rely on their publish date alone.
    """
    activity = entry.krate.updated_at if entry.krate else None

    last_commit = entry.repo.last_commit if entry.repo else None
    if last_commit is not None and (activity is None or last_commit > activity):
        activity = last_commit

    return activity


def activity_coefficient(activity: Optional[datetime], now: Optional[datetime] = None) -> float:
    """Map the time since the last activity to a download multiplier."""
    if activity is None:
        return UNMAINTAINED

    now = now or datetime.now(timezone.utc)
    inactive_days = (now - activity).days

    # Anything active within six months is maintained; stable crates may need
    # few changes. After a year without activity it is likely unmaintained.
    if inactive_days <= MAINTAINED_DAYS:
        return MAINTAINED
    if inactive_days <= UNCERTAIN_DAYS:
        return UNCERTAIN
    return UNMAINTAINED


def update_score(entry: GeneratedCrateInfo, now: Optional[datetime] = None) -> GeneratedCrateInfo:
    """Set entry.score to floor(coefficient * recent downloads)."""
    if entry.krate is None:
        # Not published to crates.io
        entry.score = 0

    coefficient = activity_coefficient(last_activity(entry), now)

    recent_downloads = 0
    if entry.krate is not None and entry.krate.recent_downloads is not None:
        recent_downloads = entry.krate.recent_downloads

    entry.score = max(0, math.floor(coefficient * recent_downloads))
    return entry
