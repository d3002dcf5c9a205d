"""The chat exchange that starts a release.

One conversation asks a single question, "feature or bugfix?", and keeps
asking until the answer matches. It then runs the pipeline exactly once and
tells the requester how it went. If the requester walks away (the channel
returns no answer) the release never starts.

States:

- `awaiting_release_type`: ask; loop on anything but `feature|bugfix`
- `confirmed`: a release type was chosen
- `cancelled`: the exchange ended without an answer
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import Literal, Protocol, cast

from relbot.core.result import Err, Ok, Result
from relbot.output.console import ConsoleProtocol
from relbot.release.errors import ReleaseError
from relbot.release.model import ReleaseRecord, ReleaseRequest, ReleaseType

from .fsm import StepOutcome, advance, finish, run_state_machine

__all__ = [
    "ChatChannel",
    "ConversationState",
    "ReleaseConversation",
    "RELEASE_TYPE_PROMPT",
]

RELEASE_TYPE_PROMPT = "Is this a feature or a bugfix release?"
RELEASE_TYPE_PATTERN = re.compile(r"(feature|bugfix)", re.IGNORECASE)

ConversationStep = Literal["awaiting_release_type", "confirmed", "cancelled"]
RunRelease = Callable[[ReleaseRequest], Awaitable[Result[ReleaseRecord, ReleaseError]]]


class ChatChannel(Protocol):
    async def ask(self, prompt: str) -> str | None:
        """Ask and wait for a reply; None when the exchange has ended."""
        ...

    async def say(self, text: str) -> None: ...


@dataclass(frozen=True, slots=True)
class ConversationState:
    step: ConversationStep
    release_type: ReleaseType | None = None


def match_release_type(text: str) -> ReleaseType | None:
    m = RELEASE_TYPE_PATTERN.search(text)
    if m is None:
        return None
    return cast(ReleaseType, m.group(1).lower())


class ReleaseConversation:
    """A conversation bound to one `(owner, repo)` trigger."""

    def __init__(
        self,
        *,
        channel: ChatChannel,
        owner: str,
        repo: str,
        run_release: RunRelease,
        console: ConsoleProtocol,
    ) -> None:
        self._channel = channel
        self._owner = owner
        self._repo = repo
        self._run_release = run_release
        self._console = console

    async def _awaiting(self, state: ConversationState) -> StepOutcome[ConversationState]:
        reply = await self._channel.ask(RELEASE_TYPE_PROMPT)
        if reply is None:
            return advance(replace(state, step="cancelled"))

        release_type = match_release_type(reply)
        if release_type is None:
            await self._channel.say("Sorry that's not what I asked...")
            return advance(state)

        await self._channel.say(f"Ok, starting {release_type} release for {self._owner}:{self._repo}")
        return advance(replace(state, step="confirmed", release_type=release_type))

    async def _done(self, state: ConversationState) -> StepOutcome[ConversationState]:
        return finish(state)

    async def collect_release_type(self) -> Result[ConversationState, ReleaseError]:
        return await run_state_machine(
            initial_state=ConversationState(step="awaiting_release_type"),
            get_step=lambda s: s.step,
            handlers={
                "awaiting_release_type": self._awaiting,
                "confirmed": self._done,
                "cancelled": self._done,
            },
        )

    async def run(self) -> Result[ReleaseRecord, ReleaseError] | None:
        """Hold the conversation.

        Returns:
            The pipeline result, or None when the conversation was cancelled
            and no release was attempted.
        """
        collected = await self.collect_release_type()
        if isinstance(collected, Err):
            self._console.error(collected.error.pretty())
            await self._channel.say(f"Error: {collected.error.message} (details in logs)")
            return collected

        state = collected.value
        if state.step != "confirmed" or state.release_type is None:
            await self._channel.say("OK, nevermind!")
            return None

        request = ReleaseRequest(owner=self._owner, repo=self._repo, release_type=state.release_type)
        result = await self._run_release(request)
        match result:
            case Ok(record):
                await self._channel.say(
                    f":rocket: {self._owner}:{self._repo} {record.version} "
                    f"{record.release_name} has been released. :tada:"
                )
                await self._channel.say(
                    f"Please review and publish the release notes for {record.version} "
                    f"at {record.release_url}"
                )
            case Err(error):
                self._console.error(f"[{error.kind}] {error.pretty()}")
                await self._channel.say(f"Error: {error.message} (details in logs)")
        return result
