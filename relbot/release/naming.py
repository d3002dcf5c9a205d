"""Human-readable release names such as `brave-falcon`.

Names are `adjective-animal` pairs. A candidate is rejected when any earlier
release of the repository already carries it, so every release of a repo
gets a name nobody has seen there before.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import Protocol

from relbot.core.result import Err, Ok, Result
from relbot.release.errors import ReleaseError
from relbot.release.hosting import ReleaseHost

__all__ = ["ReleaseNamer", "UniqueReleaseNamer", "random_name"]

ADJECTIVES = (
    "agile", "amber", "bold", "brave", "bright", "calm", "clever", "cosmic",
    "crisp", "daring", "eager", "fancy", "fearless", "gentle", "golden", "grand",
    "happy", "hardy", "humble", "jolly", "keen", "lively", "lucky", "mellow",
    "mighty", "nimble", "noble", "plucky", "proud", "quick", "quiet", "rapid",
    "rustic", "shiny", "silent", "sleek", "smart", "snappy", "solar", "steady",
    "stellar", "sturdy", "swift", "tidy", "vivid", "witty", "zesty", "zippy",
)  # fmt: skip

ANIMALS = (
    "albatross", "antelope", "badger", "beaver", "bison", "buffalo", "camel",
    "cheetah", "condor", "cougar", "coyote", "crane", "dolphin", "eagle",
    "falcon", "ferret", "finch", "gazelle", "gecko", "heron", "ibex", "jackal",
    "jaguar", "koala", "lemur", "leopard", "lynx", "marmot", "meerkat", "moose",
    "narwhal", "ocelot", "otter", "owl", "panda", "pelican", "puffin", "quokka",
    "raven", "salmon", "sparrow", "stork", "tapir", "tiger", "walrus", "wombat",
    "yak", "zebra",
)  # fmt: skip

MAX_NAME_ATTEMPTS = 50


class ReleaseNamer(Protocol):
    async def unique_name(self, owner: str, repo: str) -> Result[str, ReleaseError]: ...


def random_name(rng: random.Random) -> str:
    return f"{rng.choice(ADJECTIVES)}-{rng.choice(ANIMALS)}"


class UniqueReleaseNamer:
    def __init__(
        self,
        host: ReleaseHost,
        *,
        generate: Callable[[], str] | None = None,
        max_attempts: int = MAX_NAME_ATTEMPTS,
    ) -> None:
        rng = random.Random()
        self._host = host
        self._generate = generate or (lambda: random_name(rng))
        self._max_attempts = max_attempts

    async def unique_name(self, owner: str, repo: str) -> Result[str, ReleaseError]:
        used = await self._host.list_release_names(owner, repo)
        if isinstance(used, Err):
            return used

        for _ in range(self._max_attempts):
            candidate = self._generate()
            if candidate not in used.value:
                return Ok(candidate)

        return Err(
            ReleaseError(
                kind="naming_failed",
                message=f"no unused release name after {self._max_attempts} attempts",
                hint=f"{owner}/{repo} has {len(used.value)} named releases",
            )
        )
