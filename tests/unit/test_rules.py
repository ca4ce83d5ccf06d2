"""Tests for rule table compilation."""

from __future__ import annotations

from typing import Any

import pytest

from flexvers.config.loader import parse_config
from flexvers.core.rules import (
    ALL_INCREMENTS,
    BranchRule,
    RuleTable,
    load_rule_table,
    patterns_overlap,
)
from flexvers.core.version import BumpLevel
from flexvers.exceptions import ConfigError, ConfigErrorKind


class TestBranchRule:
    """Tests for BranchRule matching, specificity and clamping."""

    def test_literal_match(self):
        rule = BranchRule("main")

        assert rule.matches("main")
        assert not rule.matches("main2")
        assert not rule.matches("xmain")

    def test_wildcard_matches_any_run(self):
        """``*`` matches any run of characters, including slashes."""
        rule = BranchRule("feature/*")

        assert rule.matches("feature/login")
        assert rule.matches("feature/")
        assert rule.matches("feature/ui/dark-mode")
        assert not rule.matches("bugfix/login")

    def test_regex_characters_are_literal(self):
        """Dots and brackets in patterns are not regex syntax."""
        rule = BranchRule("release/1.x")

        assert rule.matches("release/1.x")
        assert not rule.matches("release/1yx")

    def test_specificity_prefers_literal_characters(self):
        """More literal characters win."""
        assert BranchRule("feature/login").specificity > BranchRule("feature/*").specificity
        assert BranchRule("feature/*").specificity > BranchRule("*").specificity

    def test_specificity_prefers_fewer_wildcards(self):
        """With equal literal characters, fewer wildcards win."""
        assert BranchRule("ab*").specificity > BranchRule("a*b*").specificity

    def test_specificity_prefers_longer_prefix(self):
        """With equal literals and wildcards, the longer literal prefix wins."""
        assert BranchRule("abc*").specificity > BranchRule("*abc").specificity

    def test_clamp_permitted_level_passes_through(self):
        rule = BranchRule("main")
        for level in BumpLevel:
            assert rule.clamp(level) is level

    def test_clamp_lowers_to_highest_permitted(self):
        """A MAJOR request on a PATCH/MINOR branch becomes MINOR."""
        rule = BranchRule("develop", increment=frozenset({BumpLevel.PATCH, BumpLevel.MINOR}))

        assert rule.clamp(BumpLevel.MAJOR) is BumpLevel.MINOR
        assert rule.clamp(BumpLevel.PATCH) is BumpLevel.PATCH

    def test_clamp_never_raises_level(self):
        """A request below every permitted level yields NONE."""
        rule = BranchRule("main", increment=frozenset({BumpLevel.MAJOR}))

        assert rule.clamp(BumpLevel.PATCH) is BumpLevel.NONE
        assert rule.clamp(BumpLevel.NONE) is BumpLevel.NONE


class TestPatternsOverlap:
    """Tests for patterns_overlap()."""

    @pytest.mark.parametrize(
        ("first", "second"),
        [
            ("feature/*", "*/login"),
            ("*", "main"),
            ("a*c", "ab*"),
            ("main", "main"),
            ("*x*", "*y*"),
        ],
    )
    def test_overlapping(self, first: str, second: str):
        assert patterns_overlap(first, second)
        assert patterns_overlap(second, first)

    @pytest.mark.parametrize(
        ("first", "second"),
        [
            ("feature/*", "release/*"),
            ("main", "develop"),
            ("*-a", "*-b"),
            ("a*", "b*"),
        ],
    )
    def test_disjoint(self, first: str, second: str):
        assert not patterns_overlap(first, second)
        assert not patterns_overlap(second, first)


class TestLoadRuleTable:
    """Tests for load_rule_table()."""

    def test_sample_table(self, rule_table: RuleTable):
        """The sample document compiles into the expected table."""
        assert [rule.pattern for rule in rule_table.branches] == [
            "main",
            "develop",
            "feature/*",
            "feature/login",
            "release/*",
        ]
        assert rule_table.branches[0].increment == ALL_INCREMENTS
        assert rule_table.branches[1].increment == frozenset({BumpLevel.MINOR})
        assert rule_table.branches[1].prerelease
        assert rule_table.commits.level_for("FEAT") is BumpLevel.MINOR
        assert rule_table.commits.release == frozenset({"release"})
        assert rule_table.fallback is None
        assert rule_table.provider_enabled("github")
        assert not rule_table.provider_enabled("gitlab")
        assert not rule_table.provider_enabled("gitea")

    def test_case_sensitive_keywords(self, sample_document: dict[str, Any]):
        sample_document["commits"]["caseSensitive"] = True
        table = load_rule_table(parse_config(sample_document))

        assert table.commits.level_for("feat") is BumpLevel.MINOR
        assert table.commits.level_for("Feat") is None

    def test_duplicate_branch_pattern(self, sample_document: dict[str, Any]):
        sample_document["branches"].append({"name": "main", "prerelease": True})

        with pytest.raises(ConfigError) as exc_info:
            load_rule_table(parse_config(sample_document))

        assert exc_info.value.kind is ConfigErrorKind.AMBIGUOUS_RULE

    def test_equally_specific_overlapping_patterns(self, sample_document: dict[str, Any]):
        """hotfix/*a* and hotfix/*b* are tied and both match hotfix/ab."""
        sample_document["branches"] += [{"name": "hotfix/*a*"}, {"name": "hotfix/*b*"}]

        with pytest.raises(ConfigError) as exc_info:
            load_rule_table(parse_config(sample_document))

        assert exc_info.value.kind is ConfigErrorKind.AMBIGUOUS_RULE
        assert "hotfix/*a*" in str(exc_info.value)

    def test_equally_specific_disjoint_patterns_allowed(self, rule_table: RuleTable):
        """feature/* and release/* tie on specificity but never overlap."""
        patterns = {rule.pattern: rule for rule in rule_table.branches}
        assert patterns["feature/*"].specificity == patterns["release/*"].specificity

    def test_keyword_under_two_levels(self, sample_document: dict[str, Any]):
        sample_document["commits"]["map"]["PATCH"].append("Feat")

        with pytest.raises(ConfigError) as exc_info:
            load_rule_table(parse_config(sample_document))

        assert exc_info.value.kind is ConfigErrorKind.OVERLAPPING_KEYWORD

    def test_keyword_case_distinct_when_case_sensitive(self, sample_document: dict[str, Any]):
        """With caseSensitive, Feat and feat are different keywords."""
        sample_document["commits"]["caseSensitive"] = True
        sample_document["commits"]["map"]["PATCH"].append("Feat")

        table = load_rule_table(parse_config(sample_document))

        assert table.commits.level_for("Feat") is BumpLevel.PATCH

    def test_release_and_prerelease_overlap(self, sample_document: dict[str, Any]):
        sample_document["commits"]["prerelease"].append("RELEASE")

        with pytest.raises(ConfigError) as exc_info:
            load_rule_table(parse_config(sample_document))

        assert exc_info.value.kind is ConfigErrorKind.OVERLAPPING_KEYWORD

    def test_unknown_provider(self, sample_document: dict[str, Any]):
        sample_document["tagging"]["supported_repositories"]["sourcehut"] = {"enabled": True}

        with pytest.raises(ConfigError) as exc_info:
            load_rule_table(parse_config(sample_document))

        assert exc_info.value.kind is ConfigErrorKind.UNKNOWN_PROVIDER
        assert "sourcehut" in str(exc_info.value)

    def test_fallback_branch(self, sample_document: dict[str, Any]):
        sample_document["fallbackBranch"] = {"increment": ["PATCH"], "prerelease": True}

        table = load_rule_table(parse_config(sample_document))

        assert table.fallback == BranchRule(
            "*", increment=frozenset({BumpLevel.PATCH}), prerelease=True
        )

    def test_tagging_settings(self, sample_document: dict[str, Any]):
        sample_document["tagging"]["prefix"] = "release-"
        sample_document["tagging"]["prereleaseLabel"] = "rc"

        table = load_rule_table(parse_config(sample_document))

        assert table.tag_prefix == "release-"
        assert table.prerelease_label == "rc"
