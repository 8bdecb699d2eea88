from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from rctrain.core.config import CONFIG_FILENAME, Config, load_config_or_default
from rctrain.core.errors import ErrorCode
from rctrain.core.result import Err
from rctrain.git.repository import Repository
from rctrain.output.console import ConsoleProtocol, RichConsole
from rctrain.output.errors import train_error_exit_code
from rctrain.services.train.refstore import GitRefStore, RefStore
from rctrain.services.train.worktree import GitWorktree, Worktree, open_repository

# Global CLI options are handed to commands through the environment.
REPO_ENV = "RCTRAIN_REPO"
REMOTE_ENV = "RCTRAIN_REMOTE"
CONFIG_ENV = "RCTRAIN_CONFIG"


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: Config
    remote: str
    store: RefStore
    worktree: Worktree
    console: ConsoleProtocol

    @property
    def mainline(self) -> str:
        return self.config.remote.mainline

    def manifest_path(self, override: Path | None, *, enabled: bool) -> Path | None:
        """Absolute manifest path, or None when version-marker updates are off."""
        if not enabled:
            return None
        path = override if override is not None else Path(self.config.manifest.path)
        if not path.is_absolute():
            path = self.root / path
        return path


def build_context() -> CLIContext:
    repo_arg = os.environ.get(REPO_ENV)
    start = Path(repo_arg) if repo_arg else Path.cwd()

    repo_result = open_repository(start)
    if isinstance(repo_result, Err):
        typer.echo(f"error: {repo_result.error.message}", err=True)
        raise typer.Exit(code=train_error_exit_code(repo_result.error))
    repo: Repository = repo_result.value

    config_arg = os.environ.get(CONFIG_ENV)
    config_path = Path(config_arg) if config_arg else repo.path / CONFIG_FILENAME
    config_result = load_config_or_default(config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    config = config_result.value

    remote = os.environ.get(REMOTE_ENV) or config.remote.name

    return CLIContext(
        root=repo.path,
        config=config,
        remote=remote,
        store=GitRefStore(repo, remote),
        worktree=GitWorktree(repo, remote),
        console=RichConsole(),
    )
