"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rctrain.core.errors import ErrorCode
from rctrain.output.console import Style
from rctrain.services.train.errors import TrainError

if TYPE_CHECKING:
    from rctrain.output.console import ConsoleProtocol

__all__ = ["print_train_error", "train_error_exit_code"]


def print_train_error(error: TrainError, console: ConsoleProtocol) -> None:
    """Print a train error with its hint, if any."""
    match error.kind:
        case "conflict":
            console.error(f"conflict: {error.message}")
        case "network":
            console.error(f"remote: {error.message}")
        case _:
            console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def train_error_exit_code(error: TrainError) -> int:
    """Get exit code for a train error."""
    match error.kind:
        case "precondition" | "validation" | "conflict":
            return int(ErrorCode.USER_ERROR)
        case "environment":
            return int(ErrorCode.ENV_ERROR)
        case "network":
            return int(ErrorCode.NETWORK_ERROR)
