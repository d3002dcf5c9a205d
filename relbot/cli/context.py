from __future__ import annotations

import os
from dataclasses import dataclass

import typer

from relbot.core.config import Settings, load_settings
from relbot.core.errors import ErrorCode
from relbot.core.result import Err
from relbot.core.workspace import TokenGenerator, WorkspaceManager
from relbot.git.credentials import SshKeyCredentials
from relbot.git.repository import BotIdentity, RepositoryClient
from relbot.output.console import ConsoleProtocol, RichConsole
from relbot.release.hosting import GithubHost
from relbot.release.naming import UniqueReleaseNamer
from relbot.release.notes import HostHistoryNotes
from relbot.release.orchestrator import ReleaseDeps
from relbot.release.version import PackageJsonVersionResolver


@dataclass(frozen=True, slots=True)
class CLIContext:
    settings: Settings
    deps: ReleaseDeps
    console: ConsoleProtocol


def build_deps(settings: Settings, console: ConsoleProtocol) -> ReleaseDeps:
    """Wire the pipeline collaborators for one process."""
    credentials = SshKeyCredentials(settings.credentials, askpass_path=settings.askpass_path)
    credentials.install_askpass()
    host = GithubHost(cwd=settings.app_root)
    return ReleaseDeps(
        workspaces=WorkspaceManager(settings.tmp_root, TokenGenerator()),
        repositories=RepositoryClient(
            credentials=credentials,
            identity=BotIdentity(settings.bot_name, settings.bot_email),
            console=console,
            host=settings.git_host,
        ),
        versions=PackageJsonVersionResolver(),
        namer=UniqueReleaseNamer(host),
        notes=HostHistoryNotes(host),
        host=host,
        console=console,
    )


def build_context() -> CLIContext:
    """Load settings or refuse to start."""
    console = RichConsole()
    loaded = load_settings(os.environ)
    if isinstance(loaded, Err):
        e = loaded.error
        where = f" ({e.path})" if e.path is not None else ""
        console.error(f"{e.message}{where}")
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    settings = loaded.value
    try:
        deps = build_deps(settings, console)
    except OSError as e:
        console.error(f"failed to prepare {settings.askpass_path}: {e}")
        raise typer.Exit(code=int(ErrorCode.IO_ERROR)) from e

    return CLIContext(settings=settings, deps=deps, console=console)
