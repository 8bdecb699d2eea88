"""Release-train resolver.

Pure functions from a RefSnapshot plus caller intent to the single action
the next mutation applies to. Nothing here touches the remote, so two calls
on the same snapshot always agree.

RC numbering has one rule: the next RC of a version is the highest observed
RC number plus one, and a version with no RC branches starts at ``rc.0``.
"""

from __future__ import annotations

from rctrain.core.result import Err, Ok, Result
from rctrain.services.train.errors import TrainError
from rctrain.services.train.model import (
    CutIntent,
    PromotionTarget,
    RcBranch,
    RefSnapshot,
    ResolvedAction,
)
from rctrain.services.train.semver import ZERO, SemVer, require_rc_branch, require_version


def next_rc_number(snapshot: RefSnapshot, version: SemVer) -> int:
    return snapshot.active_trains.get(version, -1) + 1


def next_train_version(version: SemVer) -> SemVer:
    """Version of the train started right after promoting ``version``."""
    return version.bump("minor")


def resolve_cut(
    snapshot: RefSnapshot,
    intent: CutIntent,
    *,
    mainline: str,
) -> Result[ResolvedAction, TrainError]:
    """Resolve what ``cut`` applies to.

    Precedence: explicit version > bump > continue current. A bump (alone
    or next to an explicit version) marks a new train, which authorizes the
    version-marker update.
    """
    active = snapshot.highest_active_version()
    is_new_train = intent.bump is not None

    if intent.version is not None:
        parsed = require_version(intent.version)
        if isinstance(parsed, Err):
            return parsed
        target = parsed.value
    elif intent.bump is not None:
        base = snapshot.latest_production_version or ZERO
        target = base.bump(intent.bump)
    elif active is not None:
        target = active
    else:
        return Err(
            TrainError(
                kind="precondition",
                message="no active RC train to continue",
                hint="Start one with --bump patch|minor|major or --version X.Y.Z",
            )
        )

    train = snapshot.train(target)
    superseded = None
    if intent.version is not None and active is not None and active != target:
        superseded = active

    return Ok(
        ResolvedAction(
            target_version=target,
            target_rc=next_rc_number(snapshot, target),
            is_new_train=is_new_train,
            base_ref=intent.base_ref or mainline,
            previous=train[-1] if train else None,
            superseded_version=superseded,
        )
    )


def validate_promotion_branch(name: str) -> Result[RcBranch, TrainError]:
    """Check a branch name before any remote call is made."""
    parsed = require_rc_branch(name)
    if isinstance(parsed, Err):
        return parsed
    version, n = parsed.value
    return Ok(RcBranch(version=version, number=n))


def resolve_promotion(
    snapshot: RefSnapshot,
    rc_branch: str | None,
    *,
    resume: bool = False,
) -> Result[PromotionTarget, TrainError]:
    """Pick the RC to promote and guard against duplicate releases.

    An explicit branch that was replaced by a newer RC of the same version
    falls back to the highest RC of that version. With ``resume``, an
    existing tag on the very same commit is accepted so that a re-run only
    completes the steps that are still missing.
    """
    if rc_branch is not None:
        requested = validate_promotion_branch(rc_branch)
        if isinstance(requested, Err):
            return requested
        train = snapshot.train(requested.value.version)
        match = [b for b in train if b.number == requested.value.number]
        if match:
            branch = match[0]
        elif train:
            branch = train[-1]
        else:
            return Err(
                TrainError(
                    kind="precondition",
                    message=f"no RC branches found for version {requested.value.version}",
                    hint=f"{rc_branch} does not exist on the remote",
                )
            )
    else:
        highest = snapshot.highest_rc()
        if highest is None:
            return Err(
                TrainError(
                    kind="precondition",
                    message="no RC branches found matching pattern release/X.Y.Z-rc.N",
                    hint="Cut one first: rctrain cut --bump minor",
                )
            )
        branch = highest

    tag = branch.version.to_tag()
    existing = snapshot.tags.get(tag)
    if existing is None:
        return Ok(PromotionTarget(branch=branch, version=branch.version))

    if resume and existing == branch.sha:
        return Ok(PromotionTarget(branch=branch, version=branch.version, already_tagged=True))

    return Err(
        TrainError(
            kind="conflict",
            message=f"tag {tag} already exists on the remote",
            hint="Production tags are never recreated; promote a newer version.",
        )
    )
