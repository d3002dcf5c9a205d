from __future__ import annotations

import asyncio

import typer

from relbot.core.config import Trigger
from relbot.output.console import ConsoleProtocol

from .conversation import ChatChannel, ReleaseConversation, RunRelease

__all__ = ["TerminalChannel", "listen"]


class TerminalChannel:
    """Chat over stdin/stdout. Ctrl-D or Ctrl-C ends the exchange."""

    def __init__(self, *, bot_name: str = "relbot") -> None:
        self._bot_name = bot_name

    async def ask(self, prompt: str) -> str | None:
        if prompt:
            await self.say(prompt)
        return await asyncio.to_thread(self._read)

    async def say(self, text: str) -> None:
        typer.echo(f"{self._bot_name}> {text}")

    def _read(self) -> str | None:
        try:
            return typer.prompt("you", prompt_suffix="> ", default="", show_default=False)
        except (typer.Abort, EOFError):
            return None


async def listen(
    *,
    channel: ChatChannel,
    triggers: tuple[Trigger, ...],
    run_release: RunRelease,
    console: ConsoleProtocol,
) -> None:
    """Read messages until the channel closes; a trigger phrase starts a release."""
    phrases = ", ".join(repr(t.phrase) for t in triggers)
    await channel.say(f"Listening for: {phrases}")

    while True:
        message = await channel.ask("")
        if message is None:
            return

        trigger = next((t for t in triggers if t.matches(message)), None)
        if trigger is None:
            continue

        conversation = ReleaseConversation(
            channel=channel,
            owner=trigger.owner,
            repo=trigger.repo,
            run_release=run_release,
            console=console,
        )
        await conversation.run()
