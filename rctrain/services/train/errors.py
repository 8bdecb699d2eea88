from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

TrainErrorKind = Literal[
    # required external tool missing or unusable (git, gh)
    "environment",
    # unclean working tree, not a repository, nothing to continue
    "precondition",
    # malformed version string or RC branch name
    "validation",
    # target tag or branch already exists, or moved under us
    "conflict",
    # remote fetch/push/publish failure
    "network",
]


@dataclass(frozen=True, slots=True)
class TrainError:
    kind: TrainErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
