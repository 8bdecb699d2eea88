"""Git repository abstraction.

This module provides the Repository class for the git operations the
release train needs. All operations return Result types.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.ls_remote("origin"):
        case Ok(output):
            print(output)
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rctrain.core.result import Err, Ok, Result
from rctrain.platform.process import ProcessError
from rctrain.platform.process import run as run_process

__all__ = [
    "CommitInfo",
    "GitError",
    "Lease",
    "Repository",
]

_FIELD_SEP = "\x1f"
_LOG_FORMAT = "%H%x1f%an%x1f%ai%x1f%s"


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message (stderr when available)
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class CommitInfo:
    """One commit as shown in status output."""

    sha: str
    author: str
    date: str
    subject: str

    @property
    def short_sha(self) -> str:
        return self.sha[:8]


@dataclass(frozen=True, slots=True)
class Lease:
    """Expected remote value for a ``--force-with-lease`` push.

    An empty ``expected`` means the ref must not exist on the remote.
    """

    ref: str
    expected: str = ""

    def to_arg(self) -> str:
        return f"--force-with-lease={self.ref}:{self.expected}"


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the working copy root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this path is inside a git working tree."""
        result = self._run(["rev-parse", "--is-inside-work-tree"])
        return isinstance(result, Ok) and result.value.strip() == "true"

    def toplevel(self) -> Result[Path, GitError]:
        result = self._git(["rev-parse", "--show-toplevel"], name="rev-parse")
        if isinstance(result, Err):
            return result
        return Ok(Path(result.value.strip()))

    def dirty_paths(self) -> Result[list[str], GitError]:
        """List paths with uncommitted or untracked changes."""
        result = self._git(["status", "--porcelain"], name="status")
        if isinstance(result, Err):
            return result
        return Ok([ln[3:] for ln in result.value.splitlines() if len(ln) > 3])

    def is_clean(self) -> bool:
        """Check if working tree is clean.

        Returns False if status cannot be determined.
        """
        result = self.dirty_paths()
        return isinstance(result, Ok) and not result.value

    def current_branch(self) -> str | None:
        """Get current branch name.

        Returns None if detached HEAD or error.
        """
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch == "HEAD" else branch
            case Err(_):
                return None

    def rev_parse(self, ref: str) -> Result[str, GitError]:
        """Resolve a ref to a full commit sha."""
        result = self._git(
            ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
            name="rev-parse",
        )
        if isinstance(result, Err):
            return Err(GitError(command="rev-parse", message=f"unknown ref: {ref}"))
        return Ok(result.value.strip())

    def fetch(self, remote: str) -> Result[str, GitError]:
        """Fetch branches and tags, pruning deleted remote branches."""
        refspec = f"+refs/heads/*:refs/remotes/{remote}/*"
        result = self._git(["fetch", "--tags", "--prune", remote, refspec], name="fetch")
        if isinstance(result, Err):
            return result
        return Ok(result.value.strip())

    def ls_remote(self, remote: str) -> Result[str, GitError]:
        """List branch heads and tags (with peeled entries) on a remote."""
        return self._git(["ls-remote", "--heads", "--tags", remote], name="ls-remote")

    def push(self, remote: str, refspec: str, *, lease: Lease) -> Result[str, GitError]:
        """Push a single refspec guarded by a lease (compare-and-swap).

        With ``--porcelain`` git reports per-ref rejections on stdout, so a
        failure carries both streams.
        """
        result = self._run(["push", "--porcelain", lease.to_arg(), remote, refspec])
        if isinstance(result, Err):
            e = result.error
            parts = [text for text in (e.stderr.strip(), e.stdout.strip()) if text]
            message = "\n".join(parts) or str(e)
            return Err(GitError(command="push", message=message, returncode=e.returncode))
        return Ok(result.value.strip())

    def checkout_detached(self, ref: str) -> Result[None, GitError]:
        result = self._git(["checkout", "-q", "--detach", ref], name="checkout")
        if isinstance(result, Err):
            return result
        return Ok(None)

    def checkout(self, ref: str) -> Result[None, GitError]:
        result = self._git(["checkout", "-q", ref], name="checkout")
        if isinstance(result, Err):
            return result
        return Ok(None)

    def commit_paths(self, paths: list[str], message: str) -> Result[str, GitError]:
        """Stage paths, commit them and return the new HEAD sha."""
        add = self._git(["add", "--", *paths], name="add")
        if isinstance(add, Err):
            return add

        commit = self._git(["commit", "-q", "-m", message], name="commit")
        if isinstance(commit, Err):
            return commit

        return self.rev_parse("HEAD")

    def tag_annotated(self, tag: str, target: str, message: str) -> Result[str, GitError]:
        """Create (or move) a local annotated tag and return the tag object sha.

        Local tags are scratch state; the remote copy is what counts.
        """
        created = self._git(["tag", "-f", "-a", tag, target, "-m", message], name="tag")
        if isinstance(created, Err):
            return created

        result = self._git(["rev-parse", f"refs/tags/{tag}"], name="rev-parse")
        if isinstance(result, Err):
            return result
        return Ok(result.value.strip())

    def log(self, rev_range: str, *, limit: int) -> Result[list[CommitInfo], GitError]:
        result = self._git(
            ["log", f"--format={_LOG_FORMAT}", f"--max-count={limit}", rev_range],
            name="log",
        )
        if isinstance(result, Err):
            return result
        commits = [c for c in (self._parse_commit(ln) for ln in result.value.splitlines()) if c]
        return Ok(commits)

    def show(self, ref: str) -> Result[CommitInfo, GitError]:
        commits = self.log(ref, limit=1)
        if isinstance(commits, Err):
            return commits
        if not commits.value:
            return Err(GitError(command="log", message=f"no commit for {ref}"))
        return Ok(commits.value[0])

    def read_file(self, ref: str, path: str) -> Result[str | None, GitError]:
        """Content of a repo-relative path at ref; None when ref has no such file."""
        listed = self._git(["ls-tree", "--name-only", ref, "--", path], name="ls-tree")
        if isinstance(listed, Err):
            return listed
        if not listed.value.strip():
            return Ok(None)
        return self._git(["show", f"{ref}:{path}"], name="show")

    def count(self, rev_range: str) -> Result[int, GitError]:
        result = self._git(["rev-list", "--count", rev_range], name="rev-list")
        if isinstance(result, Err):
            return result
        try:
            return Ok(int(result.value.strip()))
        except ValueError:
            return Err(GitError(command="rev-list", message=f"unexpected output: {result.value!r}"))

    def _git(self, args: list[str], *, name: str) -> Result[str, GitError]:
        result = self._run(args)
        if isinstance(result, Err):
            e = result.error
            return Err(GitError(command=name, message=e.detail, returncode=e.returncode))
        return result

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path)

    def _parse_commit(self, line: str) -> CommitInfo | None:
        parts = line.split(_FIELD_SEP)
        if len(parts) != 4:
            return None
        sha, author, date, subject = parts
        return CommitInfo(sha=sha, author=author, date=date, subject=subject)
