"""
Tests for resolving version requests against release records.
"""

import pytest

from toolshim.core.models.release import ReleaseRecord
from toolshim.core.services.tool_install.domain.version_match import (
    is_latest_request,
    is_prerelease,
    match_partial_version,
    match_version,
    strip_tag_prefix,
    tags_look_like_versions,
    toggle_v_prefix,
)


def releases(*tags: str) -> list[ReleaseRecord]:
    return [ReleaseRecord(display_name=f"Release {t}", tag=t) for t in tags]


@pytest.fixture
def numbered() -> list[ReleaseRecord]:
    """Releases in catalog order, with an empty tag and a duplicate."""
    records = releases(
        "3.0.3", "3.0.2", "3.0.1", "3.0.0", "2.0.1",
        "1.0.3-rc1", "1.0.2", "1.0.0", "0.9", "0.8",
    )
    return records + [ReleaseRecord(display_name="broken"), ReleaseRecord(tag="1.0.2")]


# ── Partial versions ────────────────────────────────────────────


class TestPartialVersion:
    def test_minor_prefix_picks_newest_patch(self, numbered):
        assert match_version("3.0", numbered) == ("3.0.3", True)

    def test_major_prefix_skips_prerelease(self, numbered):
        assert match_version("1", numbered) == ("1.0.2", True)

    def test_prefix_without_exact_x_0_0(self, numbered):
        assert match_version("2.0", numbered) == ("2.0.1", True)

    def test_repository_name_prefix_is_stripped(self):
        jq = [
            ReleaseRecord(display_name="jq 1.5", tag="jq-1.5"),
            ReleaseRecord(display_name="jq 1.6", tag="jq-1.6"),
        ]
        assert match_version("1.6", jq) == ("jq-1.6", True)

    def test_v_prefixed_tags(self):
        assert match_version("1.5", releases("v1.4.0", "v1.5.2", "v1.5.1")) == ("v1.5.2", True)

    def test_unfiltered_prerelease_suffix_keeps_numeric_order(self):
        records = releases("1.9.0", "1.10.0", "2.0.0-nightly")
        assert match_version("1", records) == ("1.10.0", True)

    def test_catalog_order_does_not_matter(self, numbered):
        assert match_version("3.0", list(reversed(numbered))) == ("3.0.3", True)

    def test_flagged_prerelease_is_excluded(self):
        records = [
            ReleaseRecord(tag="4.1.0", is_prerelease=True),
            ReleaseRecord(tag="4.0.0"),
        ]
        assert match_partial_version("4", records) == ("4.0.0", True)

    def test_only_prereleases(self):
        assert match_partial_version("2", releases("2.0.0-beta1", "2.0.0-ALPHA")) == ("", False)

    def test_no_match(self, numbered):
        assert match_version("5", numbered) == ("", False)


# ── Latest ──────────────────────────────────────────────────────


class TestLatest:
    @pytest.mark.parametrize("request_", ["", "latest", "LATEST", "  Latest "])
    def test_newest_non_prerelease(self, numbered, request_):
        assert match_version(request_, numbered) == ("3.0.3", True)

    def test_catalog_latest_lookup_is_preferred(self, numbered):
        assert match_version("latest", numbered, latest=lambda: "2.0.1") == ("2.0.1", True)

    def test_empty_catalog_latest_falls_back(self, numbered):
        assert match_version("", numbered, latest=lambda: None) == ("3.0.3", True)

    def test_latest_skips_newer_prerelease(self):
        assert match_version("", releases("1.1.0-rc1", "1.0.0")) == ("1.0.0", True)

    def test_is_latest_request(self):
        assert is_latest_request("")
        assert is_latest_request("Latest")
        assert not is_latest_request("1.0")


# ── Exact matches ───────────────────────────────────────────────


class TestExactMatch:
    def test_exact_tag_beats_partial(self):
        assert match_version("1.2", releases("1.2.5", "1.2")) == ("1.2", True)

    def test_exact_tag_ignores_case(self):
        assert match_version("V2.0.0", releases("v2.0.0", "v1.0.0")) == ("v2.0.0", True)

    def test_request_with_v_finds_bare_tag(self):
        assert match_version("v1.2.3", releases("1.2.3")) == ("1.2.3", True)

    def test_request_without_v_finds_v_tag(self):
        assert match_version("1.2.3", releases("v1.2.3")) == ("v1.2.3", True)

    def test_exact_prerelease_request(self):
        assert match_version("2.0.0-beta1", releases("1.0.0", "2.0.0-beta1")) == ("2.0.0-beta1", True)

    def test_display_name(self):
        records = [
            ReleaseRecord(display_name="Big Release", tag="v5.0.0"),
            ReleaseRecord(display_name="Small Release", tag="v4.0.0"),
        ]
        assert match_version("big release", records) == ("v5.0.0", True)

    def test_display_name_with_toggled_v(self):
        records = [ReleaseRecord(display_name="v7.1", tag="release-seven-one")]
        assert match_version("7.1", records) == ("release-seven-one", True)

    def test_release_without_tag_is_ignored(self):
        records = [ReleaseRecord(display_name="1.0", tag="")]
        assert match_version("1.0", records) == ("", False)


# ── Edge cases ──────────────────────────────────────────────────


class TestEdgeCases:
    def test_no_releases(self):
        assert match_version("1.0", []) == ("", False)
        assert match_version("", []) == ("", False)

    def test_hash_tags_do_not_match(self):
        records = releases("abc123f", "def456a")
        assert match_version("1.0", records) == ("", False)
        assert not tags_look_like_versions(records)

    def test_tags_look_like_versions(self, numbered):
        assert tags_look_like_versions(numbered)

    @pytest.mark.parametrize("tag", ["v1.2", "jq-1.6", "1.0.3rc1", "release_7", "2024.01.05"])
    def test_version_bearing_tags(self, tag):
        assert tags_look_like_versions(releases(tag))

    @pytest.mark.parametrize("tag", ["abc123f", "nightly", "1a2b3c4", ""])
    def test_tags_without_version_numbers(self, tag):
        assert not tags_look_like_versions(releases(tag))

    def test_repeatable(self, numbered):
        first = match_version("3", numbered)
        assert match_version("3", numbered) == first == ("3.0.3", True)


class TestHelpers:
    @pytest.mark.parametrize(
        "value, expected",
        [("v1.0", "1.0"), ("V1.0", "1.0"), ("1.0", "v1.0"), ("", "v")],
    )
    def test_toggle_v_prefix(self, value, expected):
        assert toggle_v_prefix(value) == expected

    @pytest.mark.parametrize(
        "tag, expected",
        [("jq-1.6", "1.6"), ("tool_v2.0", "v2.0"), ("v1.0", "v1.0"), ("1.0", "1.0")],
    )
    def test_strip_tag_prefix(self, tag, expected):
        assert strip_tag_prefix(tag) == expected

    @pytest.mark.parametrize("tag", ["1.0-rc1", "1.0-RC2", "2.0-alpha", "3.0-Beta.1"])
    def test_prerelease_markers(self, tag):
        assert is_prerelease(ReleaseRecord(tag=tag))

    def test_prerelease_flag(self):
        assert is_prerelease(ReleaseRecord(tag="1.0", is_prerelease=True))
        assert not is_prerelease(ReleaseRecord(tag="1.0"))
