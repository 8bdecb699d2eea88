"""Error codes for CLI exit status.

These values are process exit codes and must remain stable, since CI
pipelines branch on them:
- 0: Success (partial-success warnings included)
- 1: User error (precondition, validation, conflict)
- 2: Usage error (invalid invocation arguments, raised by click)
- 3: Environment error (git or gh missing, gh not authenticated)
- 4: Network error (remote fetch/push/publish failure)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    USAGE_ERROR = 2
    ENV_ERROR = 3
    NETWORK_ERROR = 4

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
