from __future__ import annotations

import asyncio
from typing import NoReturn

import typer

from relbot import __version__
from relbot.chat.conversation import match_release_type
from relbot.chat.terminal import TerminalChannel, listen
from relbot.cli.context import build_context
from relbot.core.errors import ErrorCode
from relbot.core.result import Err
from relbot.release.model import ReleaseRequest
from relbot.release.orchestrator import release_and_tag


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _exit(err: str, *, code: ErrorCode) -> NoReturn:
    typer.echo(f"error: {err}", err=True)
    raise typer.Exit(code=int(code))


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    del version


@app.command()
def check() -> None:
    """Validate startup configuration and list trigger bindings."""
    ctx = build_context()
    settings = ctx.settings
    ctx.console.success(f"passphrase set, keys at {settings.credentials.private_key.parent}")
    ctx.console.print(f"workspaces: {settings.tmp_root}")
    if not settings.triggers:
        ctx.console.warning("no [[triggers]] in relbot.toml; `relbot chat` will not react")
    for t in settings.triggers:
        ctx.console.print(f"  {t.phrase!r} -> {t.owner}/{t.repo}")


@app.command()
def release(
    owner: str = typer.Argument(..., help="Repository owner"),
    repo: str = typer.Argument(..., help="Repository name"),
    release_type: str = typer.Option(..., "--type", "-t", help="feature or bugfix"),
) -> None:
    """Cut one release without a conversation."""
    chosen = match_release_type(release_type)
    if chosen is None or chosen != release_type.strip().lower():
        _exit(f"invalid --type: {release_type} (expected feature|bugfix)", code=ErrorCode.USER_ERROR)

    ctx = build_context()
    request = ReleaseRequest(owner=owner, repo=repo, release_type=chosen)
    result = asyncio.run(release_and_tag(request, ctx.deps))
    if isinstance(result, Err):
        e = result.error
        ctx.console.error(f"[{e.kind}] {e.pretty()}")
        raise typer.Exit(code=int(e.exit_code))

    record = result.value
    typer.echo(f"{record.version} {record.release_name} {record.release_url}")


@app.command()
def chat() -> None:
    """Listen on the terminal for trigger phrases from relbot.toml."""
    ctx = build_context()
    if not ctx.settings.triggers:
        _exit("no [[triggers]] configured in relbot.toml", code=ErrorCode.ENV_ERROR)

    deps = ctx.deps

    async def run_release(request: ReleaseRequest):
        return await release_and_tag(request, deps)

    asyncio.run(
        listen(
            channel=TerminalChannel(bot_name=ctx.settings.bot_name),
            triggers=ctx.settings.triggers,
            run_release=run_release,
            console=ctx.console,
        )
    )


def main() -> None:
    app()
