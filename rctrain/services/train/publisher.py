from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from time import sleep
from typing import Protocol

from rctrain.core.result import Err, Ok, Result
from rctrain.platform.process import ProcessError
from rctrain.platform.process import run as run_process
from rctrain.services.train.errors import TrainError

GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0


class ReleasePublisher(Protocol):
    def publish(self, tag: str, message: str) -> Result[None, TrainError]:
        """Record a published release for an already-pushed tag."""
        ...

    def is_published(self, tag: str) -> Result[bool, TrainError]: ...


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    return any(marker in text for marker in markers)


def ensure_gh_available() -> Result[None, TrainError]:
    if shutil.which("gh") is None:
        return Err(
            TrainError(
                kind="environment",
                message="GitHub CLI (gh) is not installed",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def ensure_gh_auth(*, repo_root: Path) -> Result[None, TrainError]:
    result = run_process(["gh", "auth", "status"], cwd=repo_root)
    if isinstance(result, Err):
        return Err(
            TrainError(
                kind="environment",
                message="GitHub CLI is not authenticated",
                hint="Run: gh auth login",
            )
        )
    return Ok(None)


class GhReleasePublisher:
    """Publishes GitHub releases through the ``gh`` CLI."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    def publish(self, tag: str, message: str) -> Result[None, TrainError]:
        # Not retried: a create that timed out may still have landed.
        cmd = ["gh", "release", "create", tag, "--title", message, "--notes", message]
        result = run_process([*cmd, "--verify-tag"], cwd=self.repo_root)
        if isinstance(result, Err):
            return Err(
                TrainError(
                    kind="network",
                    message=f"failed to publish release {tag}",
                    hint=result.error.detail,
                )
            )
        return Ok(None)

    def is_published(self, tag: str) -> Result[bool, TrainError]:
        cmd = ["gh", "release", "view", tag, "--json", "tagName"]
        attempts = max(1, GH_READ_RETRY_ATTEMPTS)
        for attempt in range(attempts):
            result = run_process(cmd, cwd=self.repo_root)
            if isinstance(result, Ok):
                return Ok(True)

            error = result.error
            if "release not found" in error.detail.lower():
                return Ok(False)
            if attempt < attempts - 1 and _is_transient_gh_error(error):
                sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
                continue

            return Err(
                TrainError(
                    kind="network",
                    message=f"failed to query release {tag}",
                    hint=error.detail,
                )
            )

        return Err(TrainError(kind="network", message=f"failed to query release {tag}"))


def _empty_published() -> dict[str, str]:
    return {}


@dataclass
class RecordingPublisher:
    """ReleasePublisher fake that records releases in memory."""

    published: dict[str, str] = field(default_factory=_empty_published)
    fail: bool = False

    def publish(self, tag: str, message: str) -> Result[None, TrainError]:
        if self.fail:
            return Err(TrainError(kind="network", message=f"failed to publish release {tag}"))
        self.published[tag] = message
        return Ok(None)

    def is_published(self, tag: str) -> Result[bool, TrainError]:
        return Ok(tag in self.published)
