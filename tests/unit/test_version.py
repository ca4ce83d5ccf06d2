"""Tests for the version model and next-version calculation."""

from __future__ import annotations

from itertools import combinations_with_replacement

import pytest

from flexvers.core.bump import EffectiveBump
from flexvers.core.version import BumpLevel, Version, next_version, parse_version

SAMPLE_VERSIONS = [
    Version(0, 0, 0),
    Version(0, 9, 0),
    Version(1, 2, 3),
    Version(1, 2, 3, ("pre", 2)),
    Version(2, 0, 0, ("rc", 1), "build.5"),
]


class TestBumpLevel:
    """Tests for BumpLevel."""

    def test_total_order(self):
        """Levels are ordered NONE < PATCH < MINOR < MAJOR."""
        assert BumpLevel.NONE < BumpLevel.PATCH < BumpLevel.MINOR < BumpLevel.MAJOR
        assert max(BumpLevel.PATCH, BumpLevel.MAJOR, BumpLevel.MINOR) is BumpLevel.MAJOR

    def test_parse_case_insensitive(self):
        """Level names parse regardless of case."""
        assert BumpLevel.parse("minor") is BumpLevel.MINOR
        assert BumpLevel.parse(" Major ") is BumpLevel.MAJOR

    def test_parse_unknown(self):
        """Unknown names raise ValueError."""
        with pytest.raises(ValueError, match="Unknown bump level"):
            BumpLevel.parse("huge")


class TestVersionParse:
    """Tests for Version.parse() and Version.from_tag()."""

    def test_parse_simple(self):
        """Parse a plain core version."""
        assert parse_version("1.2.3") == Version(1, 2, 3)

    def test_parse_with_v_prefix(self):
        """A leading v is accepted."""
        assert Version.parse("v1.2.3") == Version(1, 2, 3)

    def test_parse_prerelease_and_build(self):
        """Prerelease identifiers keep numeric parts as integers."""
        version = Version.parse("1.0.0-pre.12+sha.abc")

        assert version.prerelease == ("pre", 12)
        assert version.build == "sha.abc"
        assert version.is_prerelease

    def test_parse_invalid(self):
        """Non-semver strings raise ValueError."""
        for text in ["1.2", "01.2.3", "1.2.3-", "banana"]:
            with pytest.raises(ValueError):
                Version.parse(text)

    def test_from_tag_with_prefix(self):
        """Tags are parsed after stripping the configured prefix."""
        assert Version.from_tag("release-2.0.1", prefix="release-") == Version(2, 0, 1)

    def test_from_tag_rejects_other_tags(self):
        """Tags that are not versions yield None."""
        assert Version.from_tag("nightly") is None
        assert Version.from_tag("1.0.0", prefix="v") is None

    def test_negative_numbers_rejected(self):
        """Version numbers are non-negative."""
        with pytest.raises(ValueError):
            Version(1, -1, 0)


class TestVersionOrdering:
    """Tests for SemVer precedence."""

    def test_prerelease_lower_than_release(self):
        """A prerelease sorts below the release of the same core."""
        assert Version.parse("1.0.0-pre.1") < Version.parse("1.0.0")
        assert Version.parse("1.0.0") > Version.parse("1.0.0-rc.9")

    def test_numeric_identifiers_compare_numerically(self):
        """pre.10 is higher than pre.2."""
        assert Version.parse("1.0.0-pre.2") < Version.parse("1.0.0-pre.10")

    def test_semver_spec_example(self):
        """Order from the SemVer 2.0 specification."""
        ordered = [
            "1.0.0-alpha",
            "1.0.0-alpha.1",
            "1.0.0-alpha.beta",
            "1.0.0-beta",
            "1.0.0-beta.2",
            "1.0.0-beta.11",
            "1.0.0-rc.1",
            "1.0.0",
        ]
        versions = [Version.parse(v) for v in ordered]
        assert sorted(reversed(versions)) == versions

    def test_build_ignored_for_precedence(self):
        """Build metadata does not affect ordering."""
        a, b = Version.parse("1.0.0+a"), Version.parse("1.0.0+b")
        assert not a < b
        assert not b < a


class TestVersionFormatting:
    """Tests for str() and tag_name()."""

    def test_str(self):
        assert str(Version(1, 2, 3, ("pre", 1), "b7")) == "1.2.3-pre.1+b7"

    def test_tag_name(self):
        """Tag names use the prefix and omit build metadata."""
        assert Version(0, 10, 0, ("pre", 1), "b7").tag_name() == "v0.10.0-pre.1"
        assert Version(1, 0, 0).tag_name("release-") == "release-1.0.0"


class TestVersionBump:
    """Tests for Version.bump()."""

    def test_major(self):
        assert Version(1, 2, 3).bump(BumpLevel.MAJOR) == Version(2, 0, 0)

    def test_minor(self):
        assert Version(1, 2, 3).bump(BumpLevel.MINOR) == Version(1, 3, 0)

    def test_patch(self):
        assert Version(1, 2, 3).bump(BumpLevel.PATCH) == Version(1, 2, 4)

    def test_bump_clears_prerelease_and_build(self):
        """Any core increment drops prerelease and build."""
        assert Version(1, 2, 3, ("pre", 4), "x").bump(BumpLevel.PATCH) == Version(1, 2, 4)

    def test_none_is_identity(self):
        version = Version(1, 2, 3, ("pre", 1))
        assert version.bump(BumpLevel.NONE) is version


class TestNextVersion:
    """Tests for next_version()."""

    @pytest.mark.parametrize("previous", SAMPLE_VERSIONS)
    def test_none_is_identity(self, previous: Version):
        """A NONE bump returns the previous version unchanged."""
        for prerelease in (False, True):
            bump = EffectiveBump(BumpLevel.NONE, prerelease=prerelease)
            assert next_version(previous, bump) == previous

    @pytest.mark.parametrize("previous", SAMPLE_VERSIONS)
    def test_monotonic_in_level(self, previous: Version):
        """A higher level never yields a lower version."""
        for low, high in combinations_with_replacement(list(BumpLevel), 2):
            for prerelease in (False, True):
                a = next_version(previous, EffectiveBump(low, prerelease=prerelease))
                b = next_version(previous, EffectiveBump(high, prerelease=prerelease))
                assert a <= b

    @pytest.mark.parametrize("previous", SAMPLE_VERSIONS)
    def test_strictly_increases(self, previous: Version):
        """Every level but NONE produces a strictly greater version."""
        for level in (BumpLevel.PATCH, BumpLevel.MINOR, BumpLevel.MAJOR):
            for prerelease in (False, True):
                bump = EffectiveBump(level, prerelease=prerelease)
                assert next_version(previous, bump) > previous

    def test_first_prerelease_of_core(self):
        """0.9.0 with a MINOR prerelease bump is 0.10.0-pre.1."""
        bump = EffectiveBump(BumpLevel.MINOR, prerelease=True)
        assert next_version(Version(0, 9, 0), bump) == Version(0, 10, 0, ("pre", 1))

    def test_prerelease_counter_increments(self):
        """Published prereleases of the same core advance the counter."""
        bump = EffectiveBump(BumpLevel.MINOR, prerelease=True)
        published = [Version(0, 10, 0, ("pre", 1)), Version(0, 10, 0, ("pre", 2))]

        result = next_version(Version(0, 9, 0), bump, published=published)

        assert result == Version(0, 10, 0, ("pre", 3))

    def test_prerelease_counter_counts_other_branches(self):
        """Versions taken elsewhere only advance the counter."""
        bump = EffectiveBump(BumpLevel.MINOR, prerelease=True)
        taken = [Version(0, 10, 0, ("pre", 4)), Version(3, 0, 0, ("pre", 1))]

        result = next_version(Version(0, 9, 0), bump, taken=taken)

        assert result == Version(0, 10, 0, ("pre", 5))

    def test_counter_resets_for_new_core(self):
        """Counters are scoped to the core version."""
        bump = EffectiveBump(BumpLevel.MAJOR, prerelease=True)
        published = [Version(0, 10, 0, ("pre", 3))]

        result = next_version(Version(0, 9, 0), bump, published=published)

        assert result == Version(1, 0, 0, ("pre", 1))

    def test_custom_label(self):
        bump = EffectiveBump(BumpLevel.PATCH, prerelease=True)
        assert next_version(Version(1, 0, 0), bump, label="rc") == Version(1, 0, 1, ("rc", 1))

    def test_other_labels_do_not_count(self):
        """Only prereleases with the same label advance the counter."""
        bump = EffectiveBump(BumpLevel.PATCH, prerelease=True)
        published = [Version(1, 0, 1, ("rc", 7))]

        assert next_version(Version(1, 0, 0), bump, published=published) == Version(
            1, 0, 1, ("pre", 1)
        )

    def test_does_not_regress_below_published_prerelease(self):
        """A PATCH after a MINOR prerelease stays on the prerelease's core."""
        bump = EffectiveBump(BumpLevel.PATCH, prerelease=True)
        published = [Version(0, 10, 0, ("pre", 1))]

        result = next_version(Version(0, 9, 0), bump, published=published)

        assert result == Version(0, 10, 0, ("pre", 2))

    def test_release_promotes_prerelease_core(self):
        """A release after prereleases of a higher core releases that core."""
        bump = EffectiveBump(BumpLevel.PATCH)
        published = [Version(0, 10, 0, ("pre", 2))]

        assert next_version(Version(0, 9, 0), bump, published=published) == Version(0, 10, 0)

    def test_release_clears_prerelease(self):
        """A release bump from a prerelease previous drops the suffix."""
        bump = EffectiveBump(BumpLevel.PATCH)
        assert next_version(Version(1, 0, 0, ("pre", 3)), bump) == Version(1, 0, 1)
