from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Generic, TypeVar

from relbot.core.result import Err, Ok, Result
from relbot.release.errors import ReleaseError

S = TypeVar("S")


@dataclass(frozen=True, slots=True)
class StepAdvance(Generic[S]):
    session: S


@dataclass(frozen=True, slots=True)
class StepFinish(Generic[S]):
    session: S


StepOutcome = StepAdvance[S] | StepFinish[S]
StepHandler = Callable[[S], Awaitable[StepOutcome[S]]]
GetStep = Callable[[S], str]


def advance(session: S) -> StepAdvance[S]:
    return StepAdvance(session=session)


def finish(session: S) -> StepFinish[S]:
    return StepFinish(session=session)


async def run_state_machine(
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[str, StepHandler[S]],
) -> Result[S, ReleaseError]:
    """Drive `initial_state` through `handlers` until one finishes.

    Returns:
        Ok(final state), or Err when a state has no handler.
    """
    current = initial_state

    while True:
        step = get_step(current)
        handler = handlers.get(step)
        if handler is None:
            return Err(
                ReleaseError(
                    kind="invalid_input",
                    message=f"unknown conversation state: {step}",
                )
            )

        outcome = await handler(current)
        if isinstance(outcome, StepFinish):
            return Ok(outcome.session)
        current = outcome.session
