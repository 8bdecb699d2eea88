"""Train mutator: applies a resolved cut to the remote.

Order of effects: optional version-marker commit (local), RC branch
creation (remote), then deletions of superseded branches (remote). A
deletion is never attempted unless the new branch landed, so a version
never goes without a live RC.

A cut requires a clean checkout. Whether the marker needs a commit is
decided from the manifest as committed at the base, not from the checkout.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rctrain.core.result import Err, Ok, Result
from rctrain.output.console import ConsoleProtocol, Style
from rctrain.services.train.errors import TrainError
from rctrain.services.train.manifest import marker_from_text, write_marker
from rctrain.services.train.model import (
    CutOutcome,
    MutationStep,
    RcBranch,
    RefListing,
    ResolvedAction,
)
from rctrain.services.train.refstore import RefStore, branch_ref
from rctrain.services.train.scanner import build_snapshot
from rctrain.services.train.worktree import Worktree


@dataclass(frozen=True, slots=True)
class CutOptions:
    replace: bool = False
    cleanup_superseded: bool = False
    # Absolute manifest path; None disables version-marker updates.
    manifest: Path | None = None
    dry_run: bool = False


def emit(step: MutationStep, *, console: ConsoleProtocol, dry_run: bool) -> None:
    prefix = "(dry-run) " if dry_run else ""
    console.print(f"{prefix}{step.describe()}", Style.DIM)


def marker_commit_message(rel_path: str, version: str) -> str:
    return f"chore(version): set {rel_path} to {version} (start new train)"


def ensure_clean(worktree: Worktree) -> Result[None, TrainError]:
    dirty = worktree.dirty_paths()
    if isinstance(dirty, Err):
        return dirty
    if dirty.value:
        shown = ", ".join(dirty.value[:5])
        return Err(
            TrainError(
                kind="precondition",
                message="working tree not clean",
                hint=f"Commit or stash changes first ({shown})",
            )
        )
    return Ok(None)


def commit_marker(
    *,
    worktree: Worktree,
    base_sha: str,
    manifest: Path,
    version: str,
    message: str,
) -> Result[str, TrainError]:
    """Commit the version marker on top of base_sha and return the new sha.

    Works on a detached HEAD and restores the original checkout afterwards.
    """
    original = worktree.current_ref()
    detached = worktree.detach(base_sha)
    if isinstance(detached, Err):
        return detached

    committed = _write_and_commit(
        worktree=worktree,
        base_sha=base_sha,
        manifest=manifest,
        version=version,
        message=message,
    )

    if original is not None:
        restored = worktree.restore(original)
        if isinstance(restored, Err) and isinstance(committed, Ok):
            return restored
    return committed


def _write_and_commit(
    *,
    worktree: Worktree,
    base_sha: str,
    manifest: Path,
    version: str,
    message: str,
) -> Result[str, TrainError]:
    written = write_marker(manifest, version)
    if isinstance(written, Err):
        return written
    if not written.value:
        return Ok(base_sha)
    rel = relative_path(manifest, worktree.root)
    return worktree.commit([rel], message)


def relative_path(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def resolve_base(
    listing: RefListing,
    worktree: Worktree,
    base_ref: str,
) -> Result[str, TrainError]:
    """Resolve base_ref, preferring the remote's own view of a branch."""
    sha = listing.branches.get(base_ref)
    if sha is not None:
        return Ok(sha)
    return worktree.rev_parse(base_ref)


def marker_update_needed(
    *,
    worktree: Worktree,
    sha: str,
    manifest: Path,
    version: str,
    console: ConsoleProtocol,
) -> Result[bool, TrainError]:
    """Whether the manifest as committed at sha holds a different version.

    A manifest missing from that commit only warns.
    """
    rel = relative_path(manifest, worktree.root)
    content = worktree.file_at(sha, rel)
    if isinstance(content, Err):
        return content
    if content.value is None:
        console.warning(f"manifest not found at '{rel}' in {sha[:8]}; skipping version update")
        return Ok(False)
    current = marker_from_text(manifest, content.value)
    if isinstance(current, Err):
        return current
    return Ok(current.value != version)


def _marker_manifest(action: ResolvedAction, options: CutOptions) -> Path | None:
    if not action.is_new_train or action.target_rc != 0:
        return None
    return options.manifest


def _deletion_candidates(
    action: ResolvedAction,
    listing: RefListing,
    options: CutOptions,
) -> list[tuple[RcBranch, str]]:
    snapshot = build_snapshot(listing)
    out: list[tuple[RcBranch, str]] = []

    if options.replace:
        older = [b for b in snapshot.train(action.target_version) if b.number < action.target_rc]
        if older:
            out.append((older[-1], f"superseded by {action.branch}"))

    superseded = action.superseded_version
    if options.cleanup_superseded and superseded is not None:
        for b in snapshot.train(superseded):
            if b.name == action.branch or any(b.name == c.name for c, _ in out):
                continue
            out.append((b, f"train {superseded} abandoned for {action.target_version}"))

    return out


def cut_train(
    *,
    store: RefStore,
    worktree: Worktree,
    action: ResolvedAction,
    options: CutOptions,
    console: ConsoleProtocol,
) -> Result[CutOutcome, TrainError]:
    """Create the RC branch for a resolved action, then retire superseded ones.

    Returns Err when nothing landed (or the branch push itself failed).
    Deletion failures after a successful push are returned as warnings.
    """
    dry_run = options.dry_run
    steps: list[MutationStep] = []
    warnings: list[str] = []

    clean = ensure_clean(worktree)
    if isinstance(clean, Err):
        return clean

    # Re-check against a fresh listing, not the snapshot the action came from.
    fresh = store.list_refs()
    if isinstance(fresh, Err):
        return fresh
    listing = fresh.value
    if action.branch in listing.branches:
        return Err(
            TrainError(
                kind="conflict",
                message=f"branch {action.branch} already exists on the remote",
                hint="Another run cut it first; re-run to re-scan.",
            )
        )

    base = resolve_base(listing, worktree, action.base_ref)
    if isinstance(base, Err):
        return base
    target_sha = base.value

    manifest = _marker_manifest(action, options)
    if manifest is not None:
        needed = marker_update_needed(
            worktree=worktree,
            sha=target_sha,
            manifest=manifest,
            version=str(action.target_version),
            console=console,
        )
        if isinstance(needed, Err):
            return needed
        if not needed.value:
            manifest = None
    if manifest is not None:
        rel = relative_path(manifest, worktree.root)
        step = MutationStep(
            kind="commit_marker",
            ref=action.branch,
            detail=f"set {rel} version to {action.target_version} on {action.base_ref}",
        )
        steps.append(step)
        emit(step, console=console, dry_run=dry_run)
        if not dry_run:
            committed = commit_marker(
                worktree=worktree,
                base_sha=target_sha,
                manifest=manifest,
                version=str(action.target_version),
                message=marker_commit_message(rel, str(action.target_version)),
            )
            if isinstance(committed, Err):
                return committed
            target_sha = committed.value

    step = MutationStep(kind="create_branch", ref=action.branch, detail=f"from {action.base_ref}")
    steps.append(step)
    emit(step, console=console, dry_run=dry_run)
    if not dry_run:
        created = store.create_ref(branch_ref(action.branch), target_sha)
        if isinstance(created, Err):
            return created

    candidates = _deletion_candidates(action, listing, options)
    if candidates and not dry_run:
        # Deletions are lease-guarded against a listing taken after the push.
        relisted = store.list_refs()
        if isinstance(relisted, Err):
            warnings.append(f"skipped deletions, could not re-read refs: {relisted.error.message}")
            candidates = []
        else:
            listing = relisted.value

    for branch, reason in candidates:
        step = MutationStep(kind="delete_branch", ref=branch.name, detail=reason)
        steps.append(step)
        emit(step, console=console, dry_run=dry_run)
        if dry_run:
            continue

        expected = listing.branches.get(branch.name)
        if expected is None:
            warnings.append(f"{branch.name} already gone from the remote")
            continue
        deleted = store.delete_ref(branch_ref(branch.name), expected)
        if isinstance(deleted, Err):
            warnings.append(f"failed to delete {branch.name}: {deleted.error.pretty()}")

    for w in warnings:
        console.warning(w)

    return Ok(
        CutOutcome(
            action=action,
            steps=tuple(steps),
            warnings=tuple(warnings),
            dry_run=dry_run,
        )
    )
