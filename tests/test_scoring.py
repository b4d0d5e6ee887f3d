"""Tests for the activity-weighted score."""

from datetime import timedelta

import pytest

from conftest import NOW
from models import Crate, GeneratedCrateInfo, RepoData
from scoring import activity_coefficient, last_activity, update_score


def entry(downloads=1000, updated_days_ago=None, pushed_days_ago=None, published=True):
    krate = None
    if published:
        updated_at = NOW - timedelta(days=updated_days_ago) if updated_days_ago is not None else None
        krate = Crate(name="foo", recent_downloads=downloads, updated_at=updated_at)
    repo = None
    if pushed_days_ago is not None:
        repo = RepoData(
            name="owner/foo",
            stargazers_count=1,
            last_commit=NOW - timedelta(days=pushed_days_ago),
        )
    return GeneratedCrateInfo(topics=["x"], krate=krate, repo=repo)


@pytest.mark.parametrize(
    "days, expected",
    [
        (0, 1000),
        (40, 1000),
        (180, 1000),
        (181, 500),
        (365, 500),
        (366, 100),
        (1000, 100),
    ],
)
def test_score_by_inactivity(days, expected):
    assert update_score(entry(updated_days_ago=days), NOW).score == expected


def test_score_is_floored():
    assert update_score(entry(downloads=15, updated_days_ago=200), NOW).score == 7


def test_no_activity_uses_lowest_coefficient():
    assert update_score(entry(updated_days_ago=None), NOW).score == 100


def test_missing_recent_downloads_scores_zero():
    assert update_score(entry(downloads=None, updated_days_ago=1), NOW).score == 0


def test_unpublished_without_repo_scores_zero():
    assert update_score(entry(published=False), NOW).score == 0


def test_unpublished_with_recent_repo_activity_still_scores_zero():
    generated = entry(published=False, pushed_days_ago=1)

    assert last_activity(generated) == NOW - timedelta(days=1)
    assert update_score(generated, NOW).score == 0


def test_recent_push_revives_stale_crate():
    generated = entry(updated_days_ago=700, pushed_days_ago=10)

    assert last_activity(generated) == NOW - timedelta(days=10)
    assert update_score(generated, NOW).score == 1000


def test_old_push_does_not_hide_recent_publish():
    generated = entry(updated_days_ago=10, pushed_days_ago=700)

    assert last_activity(generated) == NOW - timedelta(days=10)


def test_last_activity_absent():
    assert last_activity(entry(published=False)) is None


def test_activity_coefficient_future_timestamp():
    assert activity_coefficient(NOW + timedelta(hours=5), NOW) == 1.0


def test_manual_score_is_recomputed():
    generated = entry(updated_days_ago=1)
    generated.score = 123456

    assert update_score(generated, NOW).score == 1000
