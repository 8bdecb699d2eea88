"""Status reporter: read-only view of the release state.

Composes the scanner and the resolver; never mutates the remote or the
checkout. Commit metadata comes from the fetched working copy and degrades
to ``None`` when it cannot be read.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from rctrain.core.result import Err, Ok, Result
from rctrain.git.repository import CommitInfo
from rctrain.services.train.errors import TrainError
from rctrain.services.train.manifest import read_marker
from rctrain.services.train.model import RcBranch, RefSnapshot
from rctrain.services.train.refstore import RefStore
from rctrain.services.train.scanner import scan_refs
from rctrain.services.train.semver import SemVer, parse_rc_branch, parse_version
from rctrain.services.train.worktree import Worktree

RecommendationKind = Literal["promote", "start", "cut", "idle"]

DEFAULT_MAX_COMMITS = 10


@dataclass(frozen=True, slots=True)
class StatusOptions:
    remote: str
    mainline: str
    verbose: bool = False
    show_commits: bool = False
    max_commits: int = DEFAULT_MAX_COMMITS
    manifest: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseInfo:
    tag: str
    version: SemVer
    commit: CommitInfo | None


@dataclass(frozen=True, slots=True)
class TrainStatus:
    version: SemVer
    branch: RcBranch
    commit: CommitInfo | None
    # Commits ahead of the latest release; verbose mode only.
    ahead: int | None = None


@dataclass(frozen=True, slots=True)
class CommitsSince:
    base: str
    ref: str
    total: int
    shown: tuple[CommitInfo, ...]

    @property
    def hidden(self) -> int:
        return max(0, self.total - len(self.shown))


@dataclass(frozen=True, slots=True)
class Recommendation:
    kind: RecommendationKind
    summary: str
    commands: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class StatusReport:
    latest: ReleaseInfo | None
    trains: tuple[TrainStatus, ...]
    commits: CommitsSince | None
    current_branch: str | None
    recommendation: Recommendation
    warnings: tuple[str, ...] = ()

    @property
    def on_rc_branch(self) -> bool:
        return self.current_branch is not None and parse_rc_branch(self.current_branch) is not None


def _promotable_rc(snapshot: RefSnapshot) -> RcBranch | None:
    """Highest RC whose version has no production tag yet."""
    for version in sorted(snapshot.active_trains, reverse=True):
        if version.to_tag() not in snapshot.tags:
            return snapshot.train(version)[-1]
    return None


def recommend(
    snapshot: RefSnapshot,
    *,
    commits_since: int | None = None,
    manifest_version: SemVer | None = None,
) -> Recommendation:
    """Pick the next action to suggest for a snapshot.

    ``commits_since`` is None when the count was not computed, which is
    treated as "there may be new work".
    """
    highest = _promotable_rc(snapshot)
    if highest is not None:
        return Recommendation(
            kind="promote",
            summary=f"Test {highest.name}",
            commands=(
                f"rctrain promote --rc {highest.name}",
                "rctrain cut --replace",
            ),
        )

    latest = snapshot.latest_production_version
    if latest is None:
        return Recommendation(
            kind="start",
            summary="No production releases yet. Start the first RC.",
            commands=("rctrain cut --bump minor --replace",),
        )

    if commits_since == 0:
        return Recommendation(
            kind="idle",
            summary="No new commits since last release. No action needed.",
        )

    if manifest_version is not None and manifest_version > latest:
        args = f"--version {manifest_version}"
        summary = f"Cut the first RC of {manifest_version} (manifest version)"
    else:
        args = "--bump patch"
        summary = f"Cut the first RC of {latest.bump('patch')}"
    return Recommendation(
        kind="cut",
        summary=summary,
        commands=(f"rctrain cut {args} --dry-run", f"rctrain cut {args}"),
    )


def _manifest_version(path: Path | None) -> SemVer | None:
    if path is None or not path.is_file():
        return None
    marker = read_marker(path)
    if isinstance(marker, Err):
        return None
    return parse_version(marker.value)


def _info(worktree: Worktree, ref: str) -> CommitInfo | None:
    result = worktree.commit_info(ref)
    return result.value if isinstance(result, Ok) else None


def _trains(
    snapshot: RefSnapshot,
    worktree: Worktree,
    options: StatusOptions,
) -> tuple[TrainStatus, ...]:
    out: list[TrainStatus] = []
    latest_tag = snapshot.latest_tag
    for version in sorted(snapshot.active_trains):
        branch = snapshot.train(version)[-1]
        remote_ref = f"{options.remote}/{branch.name}"
        ahead: int | None = None
        if options.verbose and latest_tag is not None:
            counted = worktree.count(f"{latest_tag}..{remote_ref}")
            ahead = counted.value if isinstance(counted, Ok) else None
        out.append(
            TrainStatus(
                version=version,
                branch=branch,
                commit=_info(worktree, remote_ref),
                ahead=ahead,
            )
        )
    return tuple(out)


def _commits_since(
    latest_tag: str,
    worktree: Worktree,
    options: StatusOptions,
) -> Result[CommitsSince, TrainError]:
    ref = f"{options.remote}/{options.mainline}"
    rev_range = f"{latest_tag}..{ref}"
    total = worktree.count(rev_range)
    if isinstance(total, Err):
        return total
    shown = worktree.commits(rev_range, limit=options.max_commits)
    if isinstance(shown, Err):
        return shown
    return Ok(CommitsSince(base=latest_tag, ref=ref, total=total.value, shown=tuple(shown.value)))


def build_status(
    *,
    store: RefStore,
    worktree: Worktree,
    options: StatusOptions,
) -> Result[StatusReport, TrainError]:
    warnings: list[str] = []

    synced = worktree.sync()
    if isinstance(synced, Err):
        warnings.append(f"{synced.error.message}; commit details may be stale")

    scanned = scan_refs(store)
    if isinstance(scanned, Err):
        return scanned
    snapshot = scanned.value

    latest: ReleaseInfo | None = None
    latest_tag = snapshot.latest_tag
    if latest_tag is not None and snapshot.latest_production_version is not None:
        latest = ReleaseInfo(
            tag=latest_tag,
            version=snapshot.latest_production_version,
            commit=_info(worktree, latest_tag),
        )

    commits: CommitsSince | None = None
    if options.show_commits and latest_tag is not None:
        since = _commits_since(latest_tag, worktree, options)
        if isinstance(since, Err):
            warnings.append(since.error.message)
        else:
            commits = since.value

    recommendation = recommend(
        snapshot,
        commits_since=commits.total if commits is not None else None,
        manifest_version=_manifest_version(options.manifest),
    )

    return Ok(
        StatusReport(
            latest=latest,
            trains=_trains(snapshot, worktree, options),
            commits=commits,
            current_branch=worktree.current_branch(),
            recommendation=recommendation,
            warnings=tuple(warnings),
        )
    )
