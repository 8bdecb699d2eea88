from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from rctrain.core.result import Err, Ok, Result
from rctrain.services.train.errors import TrainError

BumpKind = Literal["major", "minor", "patch"]

RC_BRANCH_PREFIX = "release/"

_NUM = r"(0|[1-9]\d*)"
_VERSION_RE = re.compile(rf"^{_NUM}\.{_NUM}\.{_NUM}$")
_TAG_RE = re.compile(rf"^v{_NUM}\.{_NUM}\.{_NUM}$")
_RC_BRANCH_RE = re.compile(rf"^release/{_NUM}\.{_NUM}\.{_NUM}-rc\.{_NUM}$")


@dataclass(frozen=True, slots=True, order=True)
class SemVer:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def to_tag(self) -> str:
        return f"v{self}"

    def bump(self, kind: BumpKind) -> SemVer:
        match kind:
            case "major":
                return SemVer(self.major + 1, 0, 0)
            case "minor":
                return SemVer(self.major, self.minor + 1, 0)
            case "patch":
                return SemVer(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")


ZERO = SemVer(0, 0, 0)


def parse_version(text: str) -> SemVer | None:
    """Parse a bare ``X.Y.Z`` version."""
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def parse_production_tag(tag: str) -> SemVer | None:
    """Parse a production tag ``vX.Y.Z``; anything else (pre-releases included) is None."""
    m = _TAG_RE.match(tag)
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def parse_rc_branch(name: str) -> tuple[SemVer, int] | None:
    """Parse ``release/X.Y.Z-rc.N`` into ``(version, N)``."""
    m = _RC_BRANCH_RE.match(name)
    if m is None:
        return None
    version = SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    return (version, int(m.group(4)))


def format_rc_branch(version: SemVer, n: int) -> str:
    return f"{RC_BRANCH_PREFIX}{version}-rc.{n}"


def require_version(text: str) -> Result[SemVer, TrainError]:
    v = parse_version(text)
    if v is None:
        return Err(
            TrainError(
                kind="validation",
                message=f"invalid version: {text!r}",
                hint="Expected MAJOR.MINOR.PATCH (e.g. 2.3.0)",
            )
        )
    return Ok(v)


def require_rc_branch(name: str) -> Result[tuple[SemVer, int], TrainError]:
    parsed = parse_rc_branch(name)
    if parsed is None:
        return Err(
            TrainError(
                kind="validation",
                message=f"branch {name!r} must match pattern: release/X.Y.Z-rc.N",
                hint="e.g. release/2.0.20-rc.3",
            )
        )
    return Ok(parsed)
