"""Promotion committer: RC branch -> immutable production tag.

Sequence: validate -> scan -> resolve -> re-check -> (marker) -> tag ->
publish -> (auto-chain). Anything after the tag push never rolls it back;
a failed chain is reported next to the successful promotion.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rctrain.core.result import Err, Ok, Result
from rctrain.output.console import ConsoleProtocol
from rctrain.services.train.errors import TrainError
from rctrain.services.train.model import (
    CutIntent,
    CutOutcome,
    MutationStep,
    PromoteOutcome,
    PromotionTarget,
    RefListing,
)
from rctrain.services.train.mutator import (
    CutOptions,
    commit_marker,
    cut_train,
    emit,
    ensure_clean,
    marker_update_needed,
    relative_path,
)
from rctrain.services.train.publisher import ReleasePublisher
from rctrain.services.train.refstore import RefStore, tag_ref
from rctrain.services.train.resolver import (
    next_train_version,
    resolve_cut,
    resolve_promotion,
    validate_promotion_branch,
)
from rctrain.services.train.scanner import build_snapshot, scan_refs
from rctrain.services.train.worktree import Worktree


@dataclass(frozen=True, slots=True)
class PromoteRequest:
    rc_branch: str | None = None
    message: str | None = None
    auto_next: bool = False
    # Confirmation commit of the version marker on the promoted tip.
    update_marker: bool = False
    # Absolute manifest path; also used for the auto-chained train.
    manifest: Path | None = None
    dry_run: bool = False


def default_tag_message(tag: str) -> str:
    return f"Release {tag}"


def _recheck(listing: RefListing, target: PromotionTarget) -> Result[str, TrainError]:
    """Return the current tip of the RC branch, or a conflict if the remote moved."""
    existing = listing.tags.get(target.tag)
    if existing is not None and not target.already_tagged:
        return Err(
            TrainError(
                kind="conflict",
                message=f"tag {target.tag} already exists on the remote",
                hint="Another run promoted it first.",
            )
        )

    tip = listing.branches.get(target.branch.name)
    if tip is None:
        return Err(
            TrainError(
                kind="conflict",
                message=f"branch {target.branch.name} disappeared from the remote",
                hint="It was replaced by a newer RC; re-run to re-scan.",
            )
        )
    if target.branch.sha and tip != target.branch.sha:
        return Err(
            TrainError(
                kind="conflict",
                message=f"branch {target.branch.name} moved while promoting",
                hint="Re-run to promote the new tip.",
            )
        )
    return Ok(tip)


def _confirm_marker(
    *,
    worktree: Worktree,
    target: PromotionTarget,
    tip: str,
    request: PromoteRequest,
    console: ConsoleProtocol,
    steps: list[MutationStep],
) -> Result[str, TrainError]:
    """Optional marker confirmation commit; returns the sha the tag points at."""
    manifest = request.manifest
    if not request.update_marker or target.already_tagged or manifest is None:
        return Ok(tip)

    version = str(target.version)
    needed = marker_update_needed(
        worktree=worktree,
        sha=tip,
        manifest=manifest,
        version=version,
        console=console,
    )
    if isinstance(needed, Err):
        return needed
    if not needed.value:
        return Ok(tip)

    rel = relative_path(manifest, worktree.root)
    step = MutationStep(
        kind="commit_marker",
        ref=target.tag,
        detail=f"set {rel} version to {version} on {target.branch.name}",
    )
    steps.append(step)
    emit(step, console=console, dry_run=request.dry_run)
    if request.dry_run:
        return Ok(tip)

    return commit_marker(
        worktree=worktree,
        base_sha=tip,
        manifest=manifest,
        version=version,
        message=f"chore(version): set {rel} to {version}",
    )


def _chain_next(
    *,
    store: RefStore,
    worktree: Worktree,
    listing: RefListing,
    target: PromotionTarget,
    request: PromoteRequest,
    console: ConsoleProtocol,
    mainline: str,
    warnings: list[str],
) -> Result[CutOutcome | None, TrainError]:
    next_version = next_train_version(target.version)
    snapshot = build_snapshot(listing)
    if next_version in snapshot.active_trains:
        msg = f"train {next_version} already active; not starting it again"
        console.warning(msg)
        warnings.append(msg)
        return Ok(None)

    action = resolve_cut(
        snapshot,
        CutIntent(version=str(next_version), bump="minor", base_ref=mainline),
        mainline=mainline,
    )
    if isinstance(action, Err):
        return action

    console.header(f"Starting next train {next_version}")
    outcome = cut_train(
        store=store,
        worktree=worktree,
        action=action.value,
        options=CutOptions(manifest=request.manifest, dry_run=request.dry_run),
        console=console,
    )
    if isinstance(outcome, Err):
        return outcome
    return Ok(outcome.value)


def promote_rc(
    *,
    store: RefStore,
    worktree: Worktree,
    publisher: ReleasePublisher | None,
    request: PromoteRequest,
    console: ConsoleProtocol,
    mainline: str,
) -> Result[PromoteOutcome, TrainError]:
    """Promote an RC branch to a production tag and publish it.

    ``publisher=None`` skips publishing (disabled in configuration).
    """
    if request.rc_branch is not None:
        valid = validate_promotion_branch(request.rc_branch)
        if isinstance(valid, Err):
            return valid

    # Marker commits and the chained cut both need the checkout.
    if request.update_marker or request.auto_next:
        clean = ensure_clean(worktree)
        if isinstance(clean, Err):
            return clean

    synced = worktree.sync()
    if isinstance(synced, Err):
        return synced

    snapshot = scan_refs(store)
    if isinstance(snapshot, Err):
        return snapshot

    resolved = resolve_promotion(snapshot.value, request.rc_branch, resume=request.auto_next)
    if isinstance(resolved, Err):
        return resolved
    target = resolved.value

    warnings: list[str] = []
    if request.rc_branch is not None and target.branch.name != request.rc_branch:
        warnings.append(
            f"{request.rc_branch} not found on the remote; promoting {target.branch.name}"
        )
    if target.already_tagged:
        warnings.append(f"{target.tag} already points at {target.branch.name}; resuming")
    for w in warnings:
        console.warning(w)

    fresh = store.list_refs()
    if isinstance(fresh, Err):
        return fresh
    tip = _recheck(fresh.value, target)
    if isinstance(tip, Err):
        return tip

    dry_run = request.dry_run
    message = request.message or default_tag_message(target.tag)
    steps: list[MutationStep] = []

    tag_target = _confirm_marker(
        worktree=worktree,
        target=target,
        tip=tip.value,
        request=request,
        console=console,
        steps=steps,
    )
    if isinstance(tag_target, Err):
        return tag_target

    if not target.already_tagged:
        step = MutationStep(kind="create_tag", ref=target.tag, detail=f"from {target.branch.name}")
        steps.append(step)
        emit(step, console=console, dry_run=dry_run)
        if not dry_run:
            obj = worktree.tag(target.tag, tag_target.value, message)
            if isinstance(obj, Err):
                return obj
            pushed = store.create_ref(tag_ref(target.tag), obj.value)
            if isinstance(pushed, Err):
                return pushed

    if publisher is not None:
        published = Ok(False) if not target.already_tagged else publisher.is_published(target.tag)
        if isinstance(published, Err):
            return published
        if not published.value:
            step = MutationStep(kind="publish", ref=target.tag, detail=message)
            steps.append(step)
            emit(step, console=console, dry_run=dry_run)
            if not dry_run:
                done = publisher.publish(target.tag, message)
                if isinstance(done, Err):
                    return Err(
                        TrainError(
                            kind="network",
                            message=done.error.message,
                            hint=(
                                f"Tag {target.tag} is pushed. Publish it with: "
                                f"gh release create {target.tag} --verify-tag"
                            ),
                        )
                    )

    next_train: CutOutcome | None = None
    chain_error: TrainError | None = None
    if request.auto_next:
        chained = _chain_next(
            store=store,
            worktree=worktree,
            listing=fresh.value,
            target=target,
            request=request,
            console=console,
            mainline=mainline,
            warnings=warnings,
        )
        if isinstance(chained, Err):
            chain_error = chained.error
        else:
            next_train = chained.value

    return Ok(
        PromoteOutcome(
            target=target,
            steps=tuple(steps),
            warnings=tuple(warnings),
            next_train=next_train,
            chain_error=chain_error,
            dry_run=dry_run,
        )
    )
