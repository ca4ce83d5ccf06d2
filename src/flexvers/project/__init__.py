"""Project file synchronisation."""

from __future__ import annotations

from flexvers.project.sync import sync_version_files

__all__ = ["sync_version_files"]
