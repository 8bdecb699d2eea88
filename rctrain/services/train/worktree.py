"""Private local working copy used during one invocation.

Nothing here is authoritative: the remote ref namespace is re-read on every
run. The working copy is only used to fetch objects, to create commits for
the version marker, to create annotated tags and to read commit metadata.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, TypeVar

from rctrain.core.result import Err, Ok, Result
from rctrain.git.repository import CommitInfo, GitError, Repository
from rctrain.services.train.errors import TrainError, TrainErrorKind


class Worktree(Protocol):
    root: Path

    def sync(self) -> Result[None, TrainError]:
        """Fetch remote objects so listed shas resolve locally."""
        ...

    def dirty_paths(self) -> Result[list[str], TrainError]: ...

    def current_ref(self) -> str | None:
        """Current branch, or the HEAD sha when detached."""
        ...

    def current_branch(self) -> str | None: ...

    def rev_parse(self, ref: str) -> Result[str, TrainError]: ...

    def detach(self, ref: str) -> Result[None, TrainError]: ...

    def restore(self, ref: str) -> Result[None, TrainError]: ...

    def commit(self, paths: list[str], message: str) -> Result[str, TrainError]: ...

    def tag(self, name: str, sha: str, message: str) -> Result[str, TrainError]:
        """Create an annotated tag locally; returns the object to push."""
        ...

    def commits(self, rev_range: str, *, limit: int) -> Result[list[CommitInfo], TrainError]: ...

    def count(self, rev_range: str) -> Result[int, TrainError]: ...

    def commit_info(self, ref: str) -> Result[CommitInfo, TrainError]: ...

    def file_at(self, ref: str, path: str) -> Result[str | None, TrainError]:
        """Content of a repo-relative path as committed at ref (None if absent)."""
        ...


def ensure_git_available() -> Result[None, TrainError]:
    if shutil.which("git") is None:
        return Err(
            TrainError(
                kind="environment",
                message="git: missing",
                hint="Install git and make sure it is on PATH.",
            )
        )
    return Ok(None)


def open_repository(path: Path) -> Result[Repository, TrainError]:
    ok = ensure_git_available()
    if isinstance(ok, Err):
        return ok

    repo = Repository(path)
    if not repo.exists():
        return Err(
            TrainError(
                kind="precondition",
                message=f"not a git repository: {path}",
                hint="Run from inside a checkout or pass --repo.",
            )
        )

    top = repo.toplevel()
    if isinstance(top, Ok):
        return Ok(Repository(top.value))
    return Ok(repo)


T = TypeVar("T")


def _wrap(
    result: Result[T, GitError],
    *,
    kind: TrainErrorKind,
    message: str,
) -> Result[T, TrainError]:
    if isinstance(result, Err):
        return Err(TrainError(kind=kind, message=message, hint=result.error.message or None))
    return result


class GitWorktree:
    def __init__(self, repo: Repository, remote: str) -> None:
        self._repo = repo
        self.root = repo.path
        self.remote = remote

    def sync(self) -> Result[None, TrainError]:
        result = _wrap(
            self._repo.fetch(self.remote),
            kind="network",
            message=f"failed to fetch from {self.remote}",
        )
        if isinstance(result, Err):
            return result
        return Ok(None)

    def dirty_paths(self) -> Result[list[str], TrainError]:
        return _wrap(
            self._repo.dirty_paths(),
            kind="precondition",
            message="failed to read working tree status",
        )

    def current_ref(self) -> str | None:
        branch = self._repo.current_branch()
        if branch is not None:
            return branch
        head = self._repo.rev_parse("HEAD")
        return head.value if isinstance(head, Ok) else None

    def current_branch(self) -> str | None:
        return self._repo.current_branch()

    def rev_parse(self, ref: str) -> Result[str, TrainError]:
        return _wrap(
            self._repo.rev_parse(ref),
            kind="precondition",
            message=f"base ref not found: {ref}",
        )

    def detach(self, ref: str) -> Result[None, TrainError]:
        return _wrap(
            self._repo.checkout_detached(ref),
            kind="precondition",
            message=f"failed to check out {ref}",
        )

    def restore(self, ref: str) -> Result[None, TrainError]:
        return _wrap(
            self._repo.checkout(ref),
            kind="precondition",
            message=f"failed to restore checkout of {ref}",
        )

    def commit(self, paths: list[str], message: str) -> Result[str, TrainError]:
        return _wrap(
            self._repo.commit_paths(paths, message),
            kind="precondition",
            message="git commit failed",
        )

    def tag(self, name: str, sha: str, message: str) -> Result[str, TrainError]:
        return _wrap(
            self._repo.tag_annotated(name, sha, message),
            kind="precondition",
            message=f"failed to create tag {name}",
        )

    def commits(self, rev_range: str, *, limit: int) -> Result[list[CommitInfo], TrainError]:
        return _wrap(
            self._repo.log(rev_range, limit=limit),
            kind="precondition",
            message=f"failed to read commits: {rev_range}",
        )

    def count(self, rev_range: str) -> Result[int, TrainError]:
        return _wrap(
            self._repo.count(rev_range),
            kind="precondition",
            message=f"failed to count commits: {rev_range}",
        )

    def commit_info(self, ref: str) -> Result[CommitInfo, TrainError]:
        return _wrap(
            self._repo.show(ref),
            kind="precondition",
            message=f"failed to read commit: {ref}",
        )

    def file_at(self, ref: str, path: str) -> Result[str | None, TrainError]:
        return _wrap(
            self._repo.read_file(ref, path),
            kind="precondition",
            message=f"failed to read {path} at {ref}",
        )


def _empty_refs() -> dict[str, str]:
    return {}


def _empty_commits() -> dict[str, list[CommitInfo]]:
    return {}


def _empty_files() -> dict[str, dict[str, str]]:
    return {}


def _empty_log() -> list[tuple[str, tuple[str, ...], str]]:
    return []


@dataclass
class InMemoryWorktree:
    """Worktree fake.

    ``refs`` resolves names to shas; ``history`` maps a rev range to its
    commits (newest first). Commits and tags get deterministic fake shas.
    ``files`` maps a ref or sha to its committed files; any other ref sees
    the files on disk under ``root``.
    """

    root: Path
    refs: dict[str, str] = field(default_factory=_empty_refs)
    history: dict[str, list[CommitInfo]] = field(default_factory=_empty_commits)
    files: dict[str, dict[str, str]] = field(default_factory=_empty_files)
    dirty: list[str] = field(default_factory=list)
    branch: str | None = "main"
    head: str | None = None
    committed: list[tuple[str, tuple[str, ...], str]] = field(default_factory=_empty_log)
    tagged: list[tuple[str, str, str]] = field(default_factory=list)
    syncs: int = 0

    def sync(self) -> Result[None, TrainError]:
        self.syncs += 1
        return Ok(None)

    def dirty_paths(self) -> Result[list[str], TrainError]:
        return Ok(list(self.dirty))

    def current_ref(self) -> str | None:
        return self.branch if self.branch is not None else self.head

    def current_branch(self) -> str | None:
        return self.branch

    def rev_parse(self, ref: str) -> Result[str, TrainError]:
        if ref in self.refs:
            return Ok(self.refs[ref])
        if len(ref) == 40 and all(c in "0123456789abcdef" for c in ref):
            return Ok(ref)
        return Err(TrainError(kind="precondition", message=f"base ref not found: {ref}"))

    def detach(self, ref: str) -> Result[None, TrainError]:
        sha = self.rev_parse(ref)
        if isinstance(sha, Err):
            return sha
        for path, content in self.files.get(sha.value, {}).items():
            (self.root / path).write_text(content, encoding="utf-8")
        self.branch = None
        self.head = sha.value
        return Ok(None)

    def restore(self, ref: str) -> Result[None, TrainError]:
        self.branch = ref
        self.head = None
        return Ok(None)

    def commit(self, paths: list[str], message: str) -> Result[str, TrainError]:
        sha = f"{len(self.committed) + 1:040x}"
        self.committed.append((self.head or "", tuple(paths), message))
        self.head = sha
        return Ok(sha)

    def tag(self, name: str, sha: str, message: str) -> Result[str, TrainError]:
        self.tagged.append((name, sha, message))
        return Ok(sha)

    def commits(self, rev_range: str, *, limit: int) -> Result[list[CommitInfo], TrainError]:
        return Ok(list(self.history.get(rev_range, []))[:limit])

    def count(self, rev_range: str) -> Result[int, TrainError]:
        return Ok(len(self.history.get(rev_range, [])))

    def commit_info(self, ref: str) -> Result[CommitInfo, TrainError]:
        commits = self.history.get(ref)
        if not commits:
            return Err(TrainError(kind="precondition", message=f"failed to read commit: {ref}"))
        return Ok(commits[0])

    def file_at(self, ref: str, path: str) -> Result[str | None, TrainError]:
        if ref in self.files:
            return Ok(self.files[ref].get(path))
        on_disk = self.root / path
        if not on_disk.is_file():
            return Ok(None)
        return Ok(on_disk.read_text(encoding="utf-8"))
