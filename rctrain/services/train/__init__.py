"""Release-train domain: scan -> resolve -> apply."""

from .errors import TrainError, TrainErrorKind
from .model import (
    CutIntent,
    CutOutcome,
    MutationStep,
    PromoteOutcome,
    PromotionTarget,
    RcBranch,
    RefListing,
    RefSnapshot,
    ResolvedAction,
)
from .mutator import CutOptions, cut_train
from .promoter import PromoteRequest, promote_rc
from .resolver import (
    next_rc_number,
    next_train_version,
    resolve_cut,
    resolve_promotion,
    validate_promotion_branch,
)
from .scanner import build_snapshot, scan_refs
from .semver import BumpKind, SemVer
from .status import Recommendation, StatusOptions, StatusReport, build_status, recommend

__all__ = [
    "BumpKind",
    "CutIntent",
    "CutOptions",
    "CutOutcome",
    "MutationStep",
    "PromoteOutcome",
    "PromoteRequest",
    "PromotionTarget",
    "RcBranch",
    "Recommendation",
    "RefListing",
    "RefSnapshot",
    "ResolvedAction",
    "SemVer",
    "StatusOptions",
    "StatusReport",
    "TrainError",
    "TrainErrorKind",
    "build_snapshot",
    "build_status",
    "cut_train",
    "next_rc_number",
    "next_train_version",
    "promote_rc",
    "recommend",
    "resolve_cut",
    "resolve_promotion",
    "scan_refs",
    "validate_promotion_branch",
]
