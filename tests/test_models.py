"""Tests for input parsing and output rendering."""

import pytest
from pydantic import ValidationError

from models import (
    CategoryInputCrateInfo,
    Crate,
    CratesIoInputCrateInfo,
    GeneratedCrateInfo,
    ManualCrateInfo,
    RepoData,
    input_list_adapter,
)


def test_parse_input_variants():
    entries = input_list_adapter.validate_python(
        [
            {"kind": "CratesIo", "name": "serde", "topics": ["encoding"]},
            {"kind": "manual", "topics": ["x"], "crate": {"name": "foo", "recent_downloads": 1000}},
            {"kind": "Category", "name": "Science::Robotics"},
        ]
    )

    assert isinstance(entries[0], CratesIoInputCrateInfo)
    assert isinstance(entries[1], ManualCrateInfo)
    assert entries[1].krate.name == "foo"
    assert isinstance(entries[2], CategoryInputCrateInfo)


def test_unknown_kind_is_rejected():
    with pytest.raises(ValidationError):
        input_list_adapter.validate_python([{"kind": "Npm", "name": "left-pad"}])


def test_repository_override_must_be_a_url():
    with pytest.raises(ValidationError):
        CratesIoInputCrateInfo(name="foo", repository="not a url")


def test_crate_name_must_not_be_empty():
    with pytest.raises(ValidationError):
        Crate(name="")


def test_naive_timestamps_are_utc():
    crate = Crate(name="foo", updated_at="2024-01-01T10:00:00")

    assert crate.updated_at.utcoffset().total_seconds() == 0


@pytest.mark.parametrize(
    "entry, expected",
    [
        (CratesIoInputCrateInfo(name="serde"), "serde from crates.io"),
        (
            CratesIoInputCrateInfo(repository="https://github.com/a/b"),
            "https://github.com/a/b from source code repository",
        ),
        (ManualCrateInfo(krate=Crate(name="foo")), "foo from populated manually"),
        (
            ManualCrateInfo(
                repo=RepoData(name="a/b", stargazers_count=0, last_commit="2024-01-01T00:00:00Z")
            ),
            "a/b from populated manually",
        ),
        (ManualCrateInfo(), "unknown crate name from populated manually"),
    ],
)
def test_entry_labels(entry, expected):
    assert str(entry) == expected


def test_unnamed_entry_label():
    assert str(CratesIoInputCrateInfo(topics=["x"])).startswith("Invalid entry: ")


def test_output_omits_absent_meta_and_repo():
    output = GeneratedCrateInfo(topics=["x"], score=0).to_output()

    assert output == {"topics": ["x"], "score": 0}


def test_output_round_trip():
    generated = GeneratedCrateInfo(
        topics=["x"],
        score=10,
        krate=Crate(name="foo", recent_downloads=10, updated_at="2024-01-01T00:00:00Z"),
        repo=RepoData(name="a/foo", stargazers_count=3, last_commit="2024-02-01T00:00:00Z"),
    )

    output = generated.to_output()
    assert output["meta"]["name"] == "foo"
    assert output["repo"]["stargazers_count"] == 3
    assert GeneratedCrateInfo.model_validate(output).to_output() == output


def test_aliased_fields_accept_field_name_and_alias():
    crate = Crate(name="foo")

    assert ManualCrateInfo(krate=crate).krate == crate
    assert ManualCrateInfo.model_validate({"crate": {"name": "foo"}}).krate == crate
    assert GeneratedCrateInfo(krate=crate).krate == crate
    assert GeneratedCrateInfo.model_validate({"meta": {"name": "foo"}}).krate == crate
