"""Cut command - create the next RC branch."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

import typer

from rctrain.cli.commands._helpers import unwrap_or_exit
from rctrain.cli.context import build_context
from rctrain.output.console import Style
from rctrain.services.train.model import CutIntent
from rctrain.services.train.mutator import CutOptions, cut_train
from rctrain.services.train.resolver import resolve_cut
from rctrain.services.train.scanner import scan_refs


class Bump(StrEnum):
    patch = "patch"
    minor = "minor"
    major = "major"


def cut(
    version: str | None = typer.Option(
        None, "--version", help="Explicit version X.Y.Z", show_default=False
    ),
    bump: Bump | None = typer.Option(
        None, "--bump", help="Start a new train from the latest release", show_default=False
    ),
    base: str | None = typer.Option(
        None, "--base", help="Base ref (default: mainline)", show_default=False
    ),
    replace: bool = typer.Option(
        False,
        "--replace/--keep-previous",
        help="Delete the previous RC of the same version once the new one exists",
    ),
    cleanup_superseded: bool = typer.Option(
        False,
        "--cleanup-superseded",
        help="Delete the branches of the train abandoned by --version",
    ),
    manifest: Path | None = typer.Option(
        None, "--manifest", help="Version manifest (default from rctrain.toml)", show_default=False
    ),
    no_marker: bool = typer.Option(
        False, "--no-marker", help="Do not commit the version marker for a new train"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print actions without mutating"),
) -> None:
    """Cut a release-candidate branch (new train or next RC)."""
    ctx = build_context()
    console = ctx.console

    unwrap_or_exit(ctx.worktree.sync(), console)
    snapshot = unwrap_or_exit(scan_refs(ctx.store), console)

    intent = CutIntent(
        version=version,
        bump=bump.value if bump is not None else None,
        base_ref=base,
    )
    action = unwrap_or_exit(resolve_cut(snapshot, intent, mainline=ctx.mainline), console)

    label = "new train" if action.is_new_train else "next RC"
    console.header(f"Cut {action.branch} ({label})")
    console.print(f"remote: {ctx.remote}  base: {action.base_ref}", Style.DIM)
    if action.previous is not None:
        console.print(f"previous: {action.previous.name}", Style.DIM)
    if action.superseded_version is not None:
        console.print(f"supersedes train: {action.superseded_version}", Style.DIM)

    options = CutOptions(
        replace=replace,
        cleanup_superseded=cleanup_superseded,
        manifest=ctx.manifest_path(manifest, enabled=ctx.config.manifest.enabled and not no_marker),
        dry_run=dry_run,
    )
    outcome = unwrap_or_exit(
        cut_train(
            store=ctx.store,
            worktree=ctx.worktree,
            action=action,
            options=options,
            console=console,
        ),
        console,
    )

    if outcome.dry_run:
        console.print("dry-run: no changes made", Style.DIM)
        return
    console.success(f"created {action.branch}")
