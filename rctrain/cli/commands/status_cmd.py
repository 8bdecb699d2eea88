"""Status command - show release state and the recommended next action."""

from __future__ import annotations

import typer
from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from rctrain.cli.commands._helpers import unwrap_or_exit
from rctrain.cli.context import build_context
from rctrain.git.repository import CommitInfo
from rctrain.services.train.status import (
    DEFAULT_MAX_COMMITS,
    CommitsSince,
    Recommendation,
    StatusOptions,
    StatusReport,
    TrainStatus,
    build_status,
)

# Force UTF-8 for nice output
_console = Console(force_terminal=True, legacy_windows=False)


def _field(text: Text, label: str, value: str, style: str = "") -> None:
    text.append(f"\n  {label:<8}", style="dim")
    text.append(value, style=style)


def _commit_fields(text: Text, commit: CommitInfo | None, *, verbose: bool) -> None:
    if commit is None:
        _field(text, "Commit:", "unknown", "dim")
        return
    _field(text, "Commit:", commit.short_sha, "yellow")
    _field(text, "Date:", commit.date, "cyan")
    if verbose:
        _field(text, "Author:", commit.author, "green")


def render_release(report: StatusReport, *, verbose: bool) -> Panel:
    text = Text()
    latest = report.latest
    if latest is None:
        text.append("(none found)", style="dim")
    else:
        text.append(latest.tag, style="bold green")
        _field(text, "Version:", str(latest.version))
        _commit_fields(text, latest.commit, verbose=verbose)
        if verbose and latest.commit is not None:
            _field(text, "Subject:", latest.commit.subject)
    return Panel(text, title="Latest production release", title_align="left")


def _render_train(train: TrainStatus, *, verbose: bool, latest_tag: str | None) -> Text:
    text = Text()
    text.append(train.branch.name, style="bold blue")
    _commit_fields(text, train.commit, verbose=verbose)
    if verbose and latest_tag is not None:
        ahead = "?" if train.ahead is None else str(train.ahead)
        _field(text, "Ahead:", f"{ahead} commits ahead of {latest_tag}")
    return text


def render_trains(report: StatusReport, *, verbose: bool) -> Panel:
    latest_tag = report.latest.tag if report.latest is not None else None
    if not report.trains:
        body: Text | Group = Text("(no active RC branches)", style="dim")
    else:
        body = Group(
            *(_render_train(t, verbose=verbose, latest_tag=latest_tag) for t in report.trains)
        )
    return Panel(body, title="Active RC branches", title_align="left")


def render_commits(commits: CommitsSince) -> Panel:
    text = Text()
    if commits.total == 0:
        text.append("(no new commits)", style="dim")
    else:
        text.append(f"Total: {commits.total} commits", style="bold")
        for c in commits.shown:
            text.append("\n")
            text.append(c.short_sha, style="yellow")
            text.append(f" {c.date[:10]} ", style="cyan")
            text.append(c.author, style="green")
            text.append(f" {c.subject}")
        if commits.hidden:
            text.append(f"\n... and {commits.hidden} more commits (use --max <n>)", style="dim")
    return Panel(text, title=f"Commits since {commits.base} ({commits.ref})", title_align="left")


def render_recommendation(rec: Recommendation, current_branch: str | None, on_rc: bool) -> Panel:
    text = Text()
    text.append("Current branch: ", style="dim")
    text.append(current_branch or "(detached)", style="blue")
    if on_rc:
        text.append("  (RC branch)", style="dim")
    text.append("\n\n")
    text.append(rec.summary, style="bold")
    for cmd in rec.commands:
        text.append("\n  -> ", style="dim")
        text.append(cmd, style="green")
    return Panel(text, title="Recommended next action", title_align="left")


def status(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show authors and divergence"),
    show_commits: bool = typer.Option(
        False, "--show-commits", "-c", help="List mainline commits since the latest release"
    ),
    max_commits: int = typer.Option(
        DEFAULT_MAX_COMMITS, "--max", min=1, help="Maximum commits to list"
    ),
) -> None:
    """Show release state: latest release, active trains, next action."""
    ctx = build_context()

    options = StatusOptions(
        remote=ctx.remote,
        mainline=ctx.mainline,
        verbose=verbose,
        show_commits=show_commits,
        max_commits=max_commits,
        manifest=ctx.manifest_path(None, enabled=ctx.config.manifest.enabled),
    )
    report = unwrap_or_exit(
        build_status(store=ctx.store, worktree=ctx.worktree, options=options),
        ctx.console,
    )

    for w in report.warnings:
        ctx.console.warning(w)

    _console.print(render_release(report, verbose=verbose))
    _console.print(render_trains(report, verbose=verbose))
    if report.commits is not None:
        _console.print(render_commits(report.commits))
    _console.print(
        render_recommendation(report.recommendation, report.current_branch, report.on_rc_branch)
    )
