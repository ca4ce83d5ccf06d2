"""Command-line interface for flexvers."""

from __future__ import annotations

from flexvers.cli.app import app

__all__ = ["app"]
