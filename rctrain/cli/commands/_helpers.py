"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import NoReturn, TypeVar

import typer

from rctrain.core.result import Err, Result
from rctrain.output.console import ConsoleProtocol
from rctrain.output.errors import print_train_error, train_error_exit_code
from rctrain.services.train.errors import TrainError

T = TypeVar("T")


def unwrap_or_exit(result: Result[T, TrainError], console: ConsoleProtocol) -> T:
    """Return the value of an Ok result, or print the error and exit.

    This helper reduces boilerplate for the common pattern:
        match result:
            case Err(e):
                print_train_error(e, console)
                raise typer.Exit(code=train_error_exit_code(e))
            case Ok(value):
                ...
    """
    if isinstance(result, Err):
        exit_with_error(result.error, console)
    return result.value


def exit_with_error(error: TrainError, console: ConsoleProtocol) -> NoReturn:
    print_train_error(error, console)
    raise typer.Exit(code=train_error_exit_code(error))
