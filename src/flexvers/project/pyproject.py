"""Version declarations in project files.

Rewrites the version in ``pyproject.toml`` and in Python
modules declaring ``__version__``. Formatting and comments are preserved
by a targeted regex replacement rather than a TOML round-trip.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from flexvers.exceptions import ProjectError, VersionNotFoundError

if TYPE_CHECKING:
    from pathlib import Path

# [project] (PEP 621) first, then [tool.poetry].
SECTION_PATTERNS = (
    r"^\[project\].*?(?=^\[|\Z)",
    r"^\[tool\.poetry\].*?(?=^\[|\Z)",
)
VERSION_LINE = r'^(version\s*=\s*)["\']([^"\']+)["\']'

DEFAULT_FILE_PATTERNS = (
    r'^(__version__\s*=\s*)["\']([^"\']+)["\']',
    r'^(VERSION\s*=\s*)["\']([^"\']+)["\']',
)


def update_pyproject_version(pyproject_path: Path, new_version: str) -> bool:
    """Set the version in pyproject.toml.

    Returns:
        True if the file changed, False if it already declared ``new_version``

    Raises:
        VersionNotFoundError: If no version declaration is found
    """
    content = pyproject_path.read_text(encoding="utf-8")

    def replace_in_section(match: re.Match[str]) -> str:
        return re.sub(
            VERSION_LINE,
            rf'\g<1>"{new_version}"',
            match.group(0),
            count=1,
            flags=re.MULTILINE,
        )

    for section_pattern in SECTION_PATTERNS:
        section = re.search(section_pattern, content, re.MULTILINE | re.DOTALL)
        if section and re.search(VERSION_LINE, section.group(0), re.MULTILINE):
            new_content = re.sub(
                section_pattern,
                replace_in_section,
                content,
                count=1,
                flags=re.MULTILINE | re.DOTALL,
            )
            if new_content == content:
                return False
            pyproject_path.write_text(new_content, encoding="utf-8")
            return True

    raise VersionNotFoundError(
        f"Could not find version to update in {pyproject_path}. "
        "Expected [project].version or [tool.poetry].version."
    )


def update_version_file(file_path: Path, new_version: str, pattern: str | None = None) -> bool:
    """Set ``__version__`` (or ``VERSION``) in a Python module.

    Args:
        file_path: Module to update
        new_version: New version string
        pattern: Custom regex; group 1 is kept, the quoted value replaced

    Returns:
        True if the file changed

    Raises:
        ProjectError: If the file doesn't exist
        VersionNotFoundError: If no version assignment is found
    """
    if not file_path.is_file():
        raise ProjectError(f"Version file not found: {file_path}")

    content = file_path.read_text(encoding="utf-8")
    patterns = [pattern] if pattern else list(DEFAULT_FILE_PATTERNS)

    for pat in patterns:
        new_content, count = re.subn(
            pat,
            rf'\g<1>"{new_version}"',
            content,
            count=1,
            flags=re.MULTILINE,
        )
        if count:
            if new_content == content:
                return False
            file_path.write_text(new_content, encoding="utf-8")
            return True

    raise VersionNotFoundError(f"Could not find version pattern in {file_path}")
