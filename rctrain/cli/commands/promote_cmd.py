"""Promote command - tag an RC as a production release."""

from __future__ import annotations

from pathlib import Path

import typer

from rctrain.cli.commands._helpers import exit_with_error, unwrap_or_exit
from rctrain.cli.context import CLIContext, build_context
from rctrain.core.result import Err
from rctrain.output.console import Style
from rctrain.services.train.promoter import PromoteRequest, promote_rc
from rctrain.services.train.publisher import (
    GhReleasePublisher,
    ReleasePublisher,
    ensure_gh_auth,
    ensure_gh_available,
)


def _publisher(ctx: CLIContext, *, dry_run: bool) -> ReleasePublisher | None:
    if not ctx.config.publish.enabled:
        return None

    available = ensure_gh_available()
    if isinstance(available, Err):
        exit_with_error(available.error, ctx.console)
    if not dry_run:
        auth = ensure_gh_auth(repo_root=ctx.root)
        if isinstance(auth, Err):
            exit_with_error(auth.error, ctx.console)
    return GhReleasePublisher(ctx.root)


def promote(
    rc: str | None = typer.Option(
        None, "--rc", help="RC branch (default: highest RC)", show_default=False
    ),
    message: str | None = typer.Option(
        None, "--message", help="Tag message (default: Release vX.Y.Z)", show_default=False
    ),
    auto_next: bool = typer.Option(
        False, "--auto-next", help="Start the next minor train after promoting"
    ),
    update_marker: bool = typer.Option(
        False, "--update-marker", help="Commit the version marker on the promoted tip"
    ),
    manifest: Path | None = typer.Option(
        None, "--manifest", help="Version manifest (default from rctrain.toml)", show_default=False
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without mutating"),
) -> None:
    """Promote an RC branch to a production tag."""
    ctx = build_context()
    console = ctx.console
    publisher = _publisher(ctx, dry_run=dry_run)

    request = PromoteRequest(
        rc_branch=rc,
        message=message,
        auto_next=auto_next,
        update_marker=update_marker,
        manifest=ctx.manifest_path(manifest, enabled=ctx.config.manifest.enabled),
        dry_run=dry_run,
    )
    outcome = unwrap_or_exit(
        promote_rc(
            store=ctx.store,
            worktree=ctx.worktree,
            publisher=publisher,
            request=request,
            console=console,
            mainline=ctx.mainline,
        ),
        console,
    )

    target = outcome.target
    if outcome.dry_run:
        console.print("dry-run: no changes made", Style.DIM)
    else:
        console.success(f"promoted {target.branch.name} -> {target.tag}")
        if outcome.next_train is not None:
            console.success(f"started {outcome.next_train.action.branch}")

    if outcome.chain_error is not None:
        console.warning(f"{target.tag} is released; the next train was not started")
        exit_with_error(outcome.chain_error, console)
