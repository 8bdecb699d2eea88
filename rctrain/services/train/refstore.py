"""Remote ref namespace access.

The remote is the only shared mutable state between concurrent release
invocations. Every mutation goes through compare-and-swap primitives:
creating a ref that already exists fails, deleting a ref that moved fails.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from rctrain.core.result import Err, Ok, Result
from rctrain.git.repository import GitError, Lease, Repository
from rctrain.services.train.errors import TrainError
from rctrain.services.train.model import RefListing

HEADS_PREFIX = "refs/heads/"
TAGS_PREFIX = "refs/tags/"
_PEELED_SUFFIX = "^{}"

_CONFLICT_MARKERS = (
    "stale info",
    "already exists",
    "rejected",
    "non-fast-forward",
    "fetch first",
    "remote ref does not exist",
    "unable to delete",
)


def branch_ref(name: str) -> str:
    return f"{HEADS_PREFIX}{name}"


def tag_ref(name: str) -> str:
    return f"{TAGS_PREFIX}{name}"


class RefStore(Protocol):
    def list_refs(self) -> Result[RefListing, TrainError]:
        """Read all branch heads and tags in one call."""
        ...

    def create_ref(self, ref: str, sha: str) -> Result[None, TrainError]:
        """Create a full ref (``refs/heads/...`` or ``refs/tags/...``); fail if it exists."""
        ...

    def delete_ref(self, ref: str, expected_sha: str) -> Result[None, TrainError]:
        """Delete a full ref; fail if it no longer points at expected_sha."""
        ...


def parse_ls_remote(output: str) -> RefListing:
    """Parse ``git ls-remote --heads --tags`` output.

    Annotated tags appear twice; the peeled ``^{}`` line carries the commit.
    """
    branches: dict[str, str] = {}
    tags: dict[str, str] = {}
    peeled: dict[str, str] = {}

    for line in output.splitlines():
        parts = line.strip().split("\t")
        if len(parts) != 2:
            continue
        sha, ref = parts
        if ref.startswith(HEADS_PREFIX):
            branches[ref[len(HEADS_PREFIX) :]] = sha
        elif ref.startswith(TAGS_PREFIX):
            name = ref[len(TAGS_PREFIX) :]
            if name.endswith(_PEELED_SUFFIX):
                peeled[name[: -len(_PEELED_SUFFIX)]] = sha
            else:
                tags[name] = sha

    tags.update({name: sha for name, sha in peeled.items() if name in tags})
    return RefListing(branches=branches, tags=tags)


def _classify_push_error(error: GitError, *, ref: str, action: str) -> TrainError:
    text = error.message.lower()
    if any(marker in text for marker in _CONFLICT_MARKERS):
        return TrainError(
            kind="conflict",
            message=f"remote rejected {action} of {ref}",
            hint="Another run changed the remote; re-run to re-scan. " + error.message,
        )
    return TrainError(kind="network", message=f"push failed: {action} {ref}", hint=error.message)


class GitRefStore:
    """RefStore backed by ``git ls-remote`` and lease-guarded ``git push``."""

    def __init__(self, repo: Repository, remote: str) -> None:
        self._repo = repo
        self.remote = remote

    def list_refs(self) -> Result[RefListing, TrainError]:
        result = self._repo.ls_remote(self.remote)
        if isinstance(result, Err):
            return Err(
                TrainError(
                    kind="network",
                    message=f"failed to list refs on {self.remote}",
                    hint=result.error.message,
                )
            )
        return Ok(parse_ls_remote(result.value))

    def create_ref(self, ref: str, sha: str) -> Result[None, TrainError]:
        result = self._repo.push(self.remote, f"{sha}:{ref}", lease=Lease(ref))
        if isinstance(result, Err):
            return Err(_classify_push_error(result.error, ref=ref, action="create"))
        return Ok(None)

    def delete_ref(self, ref: str, expected_sha: str) -> Result[None, TrainError]:
        result = self._repo.push(self.remote, f":{ref}", lease=Lease(ref, expected_sha))
        if isinstance(result, Err):
            return Err(_classify_push_error(result.error, ref=ref, action="delete"))
        return Ok(None)


def _empty_refs() -> dict[str, str]:
    return {}


def _empty_ops() -> list[tuple[str, str]]:
    return []


@dataclass
class InMemoryRefStore:
    """RefStore fake with the same compare-and-swap semantics as the git remote.

    ``on_list`` runs after every listing, which lets tests interleave a
    concurrent writer between a check and the following act.
    """

    branches: dict[str, str] = field(default_factory=_empty_refs)
    tags: dict[str, str] = field(default_factory=_empty_refs)
    operations: list[tuple[str, str]] = field(default_factory=_empty_ops)
    fail_refs: set[str] = field(default_factory=set)
    on_list: Callable[[InMemoryRefStore], None] | None = None
    list_calls: int = 0

    def list_refs(self) -> Result[RefListing, TrainError]:
        listing = RefListing(branches=dict(self.branches), tags=dict(self.tags))
        self.list_calls += 1
        if self.on_list is not None:
            self.on_list(self)
        return Ok(listing)

    def create_ref(self, ref: str, sha: str) -> Result[None, TrainError]:
        if ref in self.fail_refs:
            return Err(TrainError(kind="network", message=f"push failed: create {ref}"))
        table, name = self._table(ref)
        if name in table:
            return Err(TrainError(kind="conflict", message=f"remote rejected create of {ref}"))
        table[name] = sha
        self.operations.append(("create", ref))
        return Ok(None)

    def delete_ref(self, ref: str, expected_sha: str) -> Result[None, TrainError]:
        if ref in self.fail_refs:
            return Err(TrainError(kind="network", message=f"push failed: delete {ref}"))
        table, name = self._table(ref)
        if table.get(name) != expected_sha:
            return Err(TrainError(kind="conflict", message=f"remote rejected delete of {ref}"))
        del table[name]
        self.operations.append(("delete", ref))
        return Ok(None)

    def snapshot_refs(self) -> tuple[dict[str, str], dict[str, str]]:
        return (dict(self.branches), dict(self.tags))

    def _table(self, ref: str) -> tuple[dict[str, str], str]:
        if ref.startswith(HEADS_PREFIX):
            return (self.branches, ref[len(HEADS_PREFIX) :])
        if ref.startswith(TAGS_PREFIX):
            return (self.tags, ref[len(TAGS_PREFIX) :])
        raise AssertionError(f"unexpected ref: {ref}")
