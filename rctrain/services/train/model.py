from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from rctrain.services.train.errors import TrainError
from rctrain.services.train.semver import BumpKind, SemVer, format_rc_branch

StepKind = Literal["commit_marker", "create_branch", "delete_branch", "create_tag", "publish"]


@dataclass(frozen=True, slots=True, order=True)
class RcBranch:
    """A release-candidate branch observed on the remote."""

    version: SemVer
    number: int
    sha: str = field(default="", compare=False)

    @property
    def name(self) -> str:
        return format_rc_branch(self.version, self.number)


@dataclass(frozen=True, slots=True)
class RefListing:
    """Raw read of the remote ref namespace.

    Names are short (``release/1.0.0-rc.0``, ``v1.0.0``). Tag values are the
    peeled commit sha, so they compare directly with branch tips.
    """

    branches: dict[str, str]
    tags: dict[str, str]


@dataclass(frozen=True, slots=True)
class RefSnapshot:
    latest_production_version: SemVer | None
    active_trains: dict[SemVer, int]
    rc_branches: tuple[RcBranch, ...]
    branches: dict[str, str]
    tags: dict[str, str]

    def train(self, version: SemVer) -> tuple[RcBranch, ...]:
        """RC branches of one version, lowest number first."""
        return tuple(b for b in self.rc_branches if b.version == version)

    def highest_active_version(self) -> SemVer | None:
        return max(self.active_trains) if self.active_trains else None

    def highest_rc(self) -> RcBranch | None:
        """Highest RC across all trains: highest version, then highest number."""
        return max(self.rc_branches) if self.rc_branches else None

    @property
    def latest_tag(self) -> str | None:
        v = self.latest_production_version
        return v.to_tag() if v is not None else None


@dataclass(frozen=True, slots=True)
class CutIntent:
    """What the caller asked for; all fields optional ("continue current")."""

    version: str | None = None
    bump: BumpKind | None = None
    base_ref: str | None = None


@dataclass(frozen=True, slots=True)
class ResolvedAction:
    target_version: SemVer
    target_rc: int
    is_new_train: bool
    base_ref: str
    # Highest existing RC of the target version (what "replace" deletes).
    previous: RcBranch | None = None
    # Previously active train abandoned by an explicit version override.
    superseded_version: SemVer | None = None

    @property
    def branch(self) -> str:
        return format_rc_branch(self.target_version, self.target_rc)


@dataclass(frozen=True, slots=True)
class PromotionTarget:
    branch: RcBranch
    version: SemVer
    # True when resuming a promotion whose tag already landed on this tip.
    already_tagged: bool = False

    @property
    def tag(self) -> str:
        return self.version.to_tag()


@dataclass(frozen=True, slots=True)
class MutationStep:
    """One remote or local mutation, printed identically in dry-run and real-run."""

    kind: StepKind
    ref: str
    detail: str

    def describe(self) -> str:
        return f"{self.kind.replace('_', ' ')} {self.ref}: {self.detail}"


@dataclass(frozen=True, slots=True)
class CutOutcome:
    action: ResolvedAction
    steps: tuple[MutationStep, ...]
    warnings: tuple[str, ...] = ()
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class PromoteOutcome:
    target: PromotionTarget
    steps: tuple[MutationStep, ...]
    warnings: tuple[str, ...] = ()
    next_train: CutOutcome | None = None
    # Auto-chain failure after the tag landed; the tag is never rolled back.
    chain_error: TrainError | None = None
    dry_run: bool = False

    @property
    def all_steps(self) -> tuple[MutationStep, ...]:
        if self.next_train is None:
            return self.steps
        return self.steps + self.next_train.steps
