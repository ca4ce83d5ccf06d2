"""Implementation of the release run.

Loads the rules, plans the next version for HEAD and publishes it as a
tag on the hosting provider. Each failure class exits with its own code
(see :mod:`flexvers.exceptions`).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from flexvers.config import load_config
from flexvers.core.planner import plan_release
from flexvers.core.rules import load_rule_table
from flexvers.exceptions import (
    ConfigError,
    FlexversError,
    GitError,
    ProjectError,
    PublishError,
    ResolveError,
)
from flexvers.project import sync_version_files
from flexvers.providers import create_provider, parse_remote_url, select_provider
from flexvers.publish import publish
from flexvers.vcs import GitRepository

if TYPE_CHECKING:
    from rich.console import Console

    from flexvers.core.planner import ReleasePlan
    from flexvers.core.rules import RuleTable
    from flexvers.publish import TagRecord


@dataclass(frozen=True)
class ReleaseOptions:
    """Flags of one run, as parsed by the CLI."""

    repository: Path
    config_file: Path | None = None
    provider: str | None = None
    dry_run: bool = False
    skip_non_formatted: bool = False
    keep_root_version_up_to_date: bool = False
    force_release: bool = False
    force_prerelease: bool = False
    lint: bool = False


def _fail(err_console: Console, label: str, error: FlexversError) -> SystemExit:
    err_console.print(f"[red]{label}:[/] {escape(str(error))}")
    return SystemExit(error.exit_code)


def run_release(options: ReleaseOptions, console: Console, err_console: Console) -> None:
    """Run one release.

    Args:
        options: Parsed command-line flags
        console: Console for standard output
        err_console: Console for error output

    Raises:
        SystemExit: With the exit code of the failure class on error
    """
    # Rules are validated before the repository or network is touched.
    try:
        config = load_config(options.repository, config_file=options.config_file)
        table = load_rule_table(config)
    except ConfigError as e:
        raise _fail(err_console, "Configuration error", e) from e

    if options.lint:
        console.print(_rules_table(table))
        console.print("[green]Configuration is valid.[/]")
        return

    try:
        repo = GitRepository(options.repository)
        remote_url = repo.remote_url()
        provider_name = select_provider(table, parse_remote_url(remote_url or ""), options.provider)
        plan = plan_release(
            repo,
            table,
            force_release=options.force_release,
            force_prerelease=options.force_prerelease,
            skip_non_formatted=options.skip_non_formatted,
        )
    except ConfigError as e:
        raise _fail(err_console, "Configuration error", e) from e
    except ResolveError as e:
        raise _fail(err_console, "Branch error", e) from e
    except GitError as e:
        raise _fail(err_console, "Git error", e) from e

    _print_plan(plan, table, console)

    if not plan.should_publish:
        console.print("[yellow]No releasable changes for this branch. Nothing to do.[/]")
        return

    try:
        with create_provider(provider_name, table, remote_url) as provider:
            record = publish(
                plan.version,
                plan.head,
                provider,
                tag_prefix=table.tag_prefix,
                message=plan.notes,
                create_release=plan.bump.release or table.providers[provider_name].release,
                dry_run=options.dry_run,
            )
    except ConfigError as e:
        raise _fail(err_console, "Configuration error", e) from e
    except PublishError as e:
        hint = ", retryable" if e.retryable else ""
        raise _fail(err_console, f"Publish error ({e.kind}{hint})", e) from e

    _print_record(record, console)

    if options.keep_root_version_up_to_date and not record.dry_run:
        try:
            changed = sync_version_files(repo.path, plan.version, config.version_files)
        except ProjectError as e:
            raise _fail(err_console, "Version sync error", e) from e
        for path in changed:
            console.print(f"  [green]✓[/] Updated version in {path.relative_to(repo.path)}")


def _rules_table(table: RuleTable) -> Table:
    rules = Table(title="Branch rules")
    rules.add_column("Pattern", style="cyan")
    rules.add_column("Increment")
    rules.add_column("Prerelease")

    entries = list(table.branches)
    if table.fallback is not None:
        entries.append(table.fallback)
    for rule in entries:
        label = rule.pattern if rule is not table.fallback else f"{rule.pattern} (fallback)"
        rules.add_row(
            label,
            ", ".join(str(level) for level in sorted(rule.increment, reverse=True)),
            "yes" if rule.prerelease else "no",
        )
    return rules


def _print_plan(plan: ReleasePlan, table: RuleTable, console: Console) -> None:
    since = plan.previous_tag or "the first commit"
    console.print(
        f"Branch [cyan]{plan.branch}[/] (rule [cyan]{plan.rule.pattern}[/]), "
        f"{len(plan.commits)} commit(s) since {since}"
    )
    if plan.bump.requested is not plan.bump.level:
        console.print(
            f"[dim]Commits requested {plan.bump.requested}, branch permits {plan.bump.level}[/]"
        )
    if plan.should_publish:
        console.print(
            f"{plan.bump.level} bump: [cyan]{plan.previous}[/] → "
            f"[green]{plan.version.tag_name(table.tag_prefix)}[/]"
        )


def _print_record(record: TagRecord, console: Console) -> None:
    if record.dry_run:
        title, style = "[yellow]Dry Run[/]", "yellow"
        body = f"Would tag [cyan]{record.commit_id[:12]}[/] as [green]{record.tag_name}[/]"
    elif record.existed:
        title, style = "[green]Already Published[/]", "green"
        body = f"[green]{record.tag_name}[/] already points at [cyan]{record.commit_id[:12]}[/]"
    else:
        title, style = "[green]Published[/]", "green"
        body = f"Tagged [cyan]{record.commit_id[:12]}[/] as [green]{record.tag_name}[/]"

    body += f" on {record.provider}"
    if record.release_url:
        body += f"\nRelease: {record.release_url}"
    console.print(Panel(body, title=title, border_style=style))
