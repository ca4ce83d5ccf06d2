"""Semantic version model and next-version calculation.

Versions follow SemVer 2.0 precedence: build metadata is ignored, a
prerelease sorts below the release of the same core version, numeric
prerelease identifiers compare numerically and below alphanumeric ones.

``next_version`` is a pure function of the previous version, the
effective bump and the versions already published. It never touches git
or the network.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flexvers.core.bump import EffectiveBump


VERSION_PATTERN = re.compile(
    r"^(?P<major>0|[1-9]\d*)"
    r"\.(?P<minor>0|[1-9]\d*)"
    r"\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

DEFAULT_PRERELEASE_LABEL = "pre"


class BumpLevel(IntEnum):
    """Magnitude of a version increment, ordered so that ``max`` wins."""

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        return self.name

    @classmethod
    def parse(cls, value: str | BumpLevel) -> BumpLevel:
        """Parse a level name case-insensitively."""
        if isinstance(value, BumpLevel):
            return value
        try:
            return cls[value.strip().upper()]
        except KeyError:
            valid = ", ".join(level.name for level in cls)
            raise ValueError(f"Unknown bump level {value!r}, expected one of: {valid}") from None


def _parse_identifier(identifier: str) -> str | int:
    return int(identifier) if identifier.isdigit() else identifier


@dataclass(frozen=True, slots=True)
class Version:
    """A semantic version.

    Attributes:
        major: Major version number
        minor: Minor version number
        patch: Patch version number
        prerelease: Dot-separated prerelease identifiers, numeric ones as int
        build: Build metadata, ignored for ordering
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str | int, ...] = ()
    build: str | None = None

    def __post_init__(self) -> None:
        if min(self.major, self.minor, self.patch) < 0:
            raise ValueError(f"Version numbers must be non-negative: {self._core_str()}")

    @classmethod
    def parse(cls, text: str, prefix: str = "") -> Version:
        """Parse a version string, optionally stripping a tag prefix.

        A leading ``v`` is always accepted, so ``v1.2.3`` and ``1.2.3``
        parse the same.

        Raises:
            ValueError: If the text is not a semantic version
        """
        value = text.strip()
        if prefix and value.startswith(prefix):
            value = value[len(prefix) :]
        elif value[:1] in ("v", "V"):
            value = value[1:]

        match = VERSION_PATTERN.match(value)
        if not match:
            raise ValueError(f"Invalid semantic version: {text!r}")

        prerelease = match.group("prerelease")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=tuple(_parse_identifier(p) for p in prerelease.split("."))
            if prerelease
            else (),
            build=match.group("build"),
        )

    @classmethod
    def from_tag(cls, tag_name: str, prefix: str = "v") -> Version | None:
        """Parse a tag name, returning None for tags that are not versions."""
        if prefix and not tag_name.startswith(prefix):
            return None
        try:
            return cls.parse(tag_name[len(prefix) :])
        except ValueError:
            return None

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    @property
    def core(self) -> Version:
        """The version without prerelease and build metadata."""
        return Version(self.major, self.minor, self.patch)

    def bump(self, level: BumpLevel) -> Version:
        """Apply a core increment, clearing prerelease and build.

        ``NONE`` returns the version unchanged.
        """
        if level is BumpLevel.MAJOR:
            return Version(self.major + 1, 0, 0)
        if level is BumpLevel.MINOR:
            return Version(self.major, self.minor + 1, 0)
        if level is BumpLevel.PATCH:
            return Version(self.major, self.minor, self.patch + 1)
        return self

    def with_prerelease(self, label: str, number: int) -> Version:
        """Return the core version with a ``label.number`` prerelease suffix."""
        return replace(self.core, prerelease=(label, number))

    def prerelease_number(self, label: str) -> int | None:
        """Counter of a ``label.N`` prerelease, or None for other shapes."""
        if len(self.prerelease) == 2 and self.prerelease[0] == label:
            number = self.prerelease[1]
            if isinstance(number, int):
                return number
        return None

    def tag_name(self, prefix: str = "v") -> str:
        """Canonical tag name: ``{prefix}{major}.{minor}.{patch}[-{prerelease}]``."""
        name = f"{prefix}{self._core_str()}"
        if self.prerelease:
            name += "-" + ".".join(str(p) for p in self.prerelease)
        return name

    def _core_str(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def _precedence_key(self) -> tuple:
        identifiers = tuple(
            (0, part, "") if isinstance(part, int) else (1, 0, part) for part in self.prerelease
        )
        return (self.major, self.minor, self.patch, 0 if self.prerelease else 1, identifiers)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() < other._precedence_key()

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() <= other._precedence_key()

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() > other._precedence_key()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() >= other._precedence_key()

    def __str__(self) -> str:
        text = self.tag_name(prefix="")
        if self.build:
            text += f"+{self.build}"
        return text


def parse_version(text: str, prefix: str = "") -> Version:
    """Parse a version string. See :meth:`Version.parse`."""
    return Version.parse(text, prefix)


def next_version(
    previous: Version,
    bump: EffectiveBump,
    *,
    published: Iterable[Version] = (),
    taken: Iterable[Version] = (),
    label: str = DEFAULT_PRERELEASE_LABEL,
) -> Version:
    """Compute the version that follows ``previous``.

    Args:
        previous: Last released version of the branch lineage
        bump: Effective bump for the commit range since ``previous``
        published: Versions tagged on the same lineage after ``previous``,
            the result never regresses below an earlier prerelease here
        taken: Versions tagged anywhere else in the repository; they only
            advance the prerelease counter so tags never collide
        label: Prerelease label, the suffix is ``-{label}.{N}``

    Returns:
        ``previous`` itself for a NONE bump, otherwise a strictly greater
        version. Prerelease counters start at 1 for each core version.
    """
    if bump.level is BumpLevel.NONE:
        return previous

    core = previous.bump(bump.level)
    history = list(published)

    for seen in history:
        if seen.is_prerelease and seen.core > previous.core and seen.core > core:
            core = seen.core

    if not bump.prerelease:
        return core

    counters = [
        number
        for seen in [*history, *taken]
        if seen.core == core and (number := seen.prerelease_number(label)) is not None
    ]
    return core.with_prerelease(label, max(counters, default=0) + 1)
