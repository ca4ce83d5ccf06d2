"""Keeping the version declared in the repository in sync with the tag.

This runs only after a successful publish and only when requested with
``--keep-root-version-up-to-date``; the version decision never depends
on file contents.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flexvers.exceptions import VersionNotFoundError
from flexvers.project.pyproject import update_pyproject_version, update_version_file

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from flexvers.core.version import Version

logger = logging.getLogger(__name__)


def sync_version_files(
    root: Path,
    version: Version,
    version_files: Iterable[Path] = (),
) -> list[Path]:
    """Write ``version`` into the root pyproject.toml and configured files.

    A root pyproject.toml that is missing or has no static version is
    skipped; configured version files must exist and declare a version.

    Returns:
        Files that were changed

    Raises:
        ProjectError: If a configured file is missing or has no version
    """
    changed: list[Path] = []
    new_version = str(version)

    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        try:
            if update_pyproject_version(pyproject, new_version):
                changed.append(pyproject)
        except VersionNotFoundError:
            logger.warning("%s declares no static version, skipping it", pyproject.name)
    else:
        logger.debug("No pyproject.toml in %s", root)

    for relative in version_files:
        path = root / relative
        if update_version_file(path, new_version):
            changed.append(path)

    for path in changed:
        logger.info("Updated version in %s to %s", path.relative_to(root), new_version)
    return changed
