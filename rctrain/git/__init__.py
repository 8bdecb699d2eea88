"""Git operations module.

Usage:
    from rctrain.git import Repository

    repo = Repository(Path("/path/to/repo"))
    if repo.exists() and repo.is_clean():
        print(repo.current_branch())
"""

from rctrain.git.repository import (
    CommitInfo,
    GitError,
    Lease,
    Repository,
)

__all__ = [
    "CommitInfo",
    "GitError",
    "Lease",
    "Repository",
]
