"""Command-line entry point for flexvers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from flexvers import __version__
from flexvers.cli.commands.release import ReleaseOptions, run_release

app = typer.Typer(
    name="flexvers",
    help="Compute the next semantic version from commit history and publish it as a tag.",
    add_completion=False,
    no_args_is_help=False,
)

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, markup=False)],
        force=True,
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"flexvers {__version__}")
        raise typer.Exit()


@app.command()
def main(
    config_file: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Configuration file (.semver.json or pyproject.toml)."),
    ] = None,
    repository: Annotated[
        Path,
        typer.Option("--repository", "-r", help="Directory of the targeted repository."),
    ] = Path("."),
    provider: Annotated[
        str | None,
        typer.Option(
            "--provider",
            "--override-repository-type",
            help="Override the detected repository type: github, gitlab, bitbucket, gitea.",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Compute and check, but never create tags."),
    ] = False,
    skip_non_formatted: Annotated[
        bool,
        typer.Option(
            "--skip-non-formatted",
            help="Treat commits without a conventional header as no change.",
        ),
    ] = False,
    keep_root_version_up_to_date: Annotated[
        bool,
        typer.Option(
            "--keep-root-version-up-to-date",
            help="Write the published version into pyproject.toml and configured version files.",
        ),
    ] = False,
    force_release: Annotated[
        bool,
        typer.Option("--force-release", help="Never mark the version as a prerelease."),
    ] = False,
    force_prerelease: Annotated[
        bool,
        typer.Option("--force-pre-release", help="Always mark the version as a prerelease."),
    ] = False,
    lint: Annotated[
        bool,
        typer.Option("--lint", help="Only validate the configuration."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = None,
) -> None:
    """Compute the next version for HEAD and publish it as a tag."""
    if force_release and force_prerelease:
        raise typer.BadParameter("--force-release and --force-pre-release are mutually exclusive")

    _setup_logging(verbose)
    run_release(
        ReleaseOptions(
            repository=repository,
            config_file=config_file,
            provider=provider,
            dry_run=dry_run,
            skip_non_formatted=skip_non_formatted,
            keep_root_version_up_to_date=keep_root_version_up_to_date,
            force_release=force_release,
            force_prerelease=force_prerelease,
            lint=lint,
        ),
        console,
        err_console,
    )
