from __future__ import annotations

import os
from pathlib import Path

import typer

from rctrain import __version__
from rctrain.cli.commands.cut_cmd import cut
from rctrain.cli.commands.promote_cmd import promote
from rctrain.cli.commands.status_cmd import status
from rctrain.cli.context import CONFIG_ENV, REMOTE_ENV, REPO_ENV
from rctrain.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(cut)
app.command()(promote)
app.command()(status)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    repo: Path | None = typer.Option(
        None,
        "--repo",
        help="Repository path (default: current directory)",
    ),
    remote: str | None = typer.Option(None, "--remote", help="Remote name (default: origin)"),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: <repo>/rctrain.toml)",
    ),
) -> None:
    """Release-train automation: cut, promote and inspect RC branches."""
    if repo is not None:
        try:
            root = repo.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --repo: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not root.is_dir():
            typer.echo(f"error: --repo '{root}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        os.environ[REPO_ENV] = str(root)

    if remote is not None:
        os.environ[REMOTE_ENV] = remote

    if config is not None:
        os.environ[CONFIG_ENV] = str(config.expanduser())


def main() -> None:
    app()
