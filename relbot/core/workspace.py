"""Ephemeral release workspaces.

Each release attempt clones into its own directory
`<tmp_root>/<repo>/<token>`. The token comes from a process-wide
`TokenGenerator`, so concurrent attempts (same repo or not) never share a
path. Removal is best-effort: it reports failure as an `Err` and never
raises.
"""

from __future__ import annotations

import asyncio
import itertools
import os
import secrets
import shutil
from dataclasses import dataclass
from pathlib import Path

from relbot.core.result import Err, Ok, Result
from relbot.release.errors import ReleaseError

__all__ = ["TokenGenerator", "Workspace", "WorkspaceManager"]


class TokenGenerator:
    """Unique tokens of the form `<pid>-<counter>-<random>`.

    `next()` never suspends, so under asyncio two callers can never observe
    the same counter value. The random suffix keeps tokens distinct across
    process restarts that reuse a pid.
    """

    def __init__(self, *, pid: int | None = None) -> None:
        self._pid = os.getpid() if pid is None else pid
        self._counter = itertools.count(1)

    def next(self) -> str:
        return f"{self._pid}-{next(self._counter)}-{secrets.token_hex(4)}"


@dataclass(frozen=True, slots=True)
class Workspace:
    path: Path
    token: str


def _make_fresh_dir(path: Path) -> bool:
    if path.exists():
        return False
    path.mkdir(parents=True, exist_ok=True)
    return True


class WorkspaceManager:
    """Allocates and destroys release workspaces under `root`."""

    def __init__(self, root: Path, tokens: TokenGenerator) -> None:
        self.root = root
        self._tokens = tokens

    async def create_workspace(self, name: str) -> Result[Workspace, ReleaseError]:
        """Create a fresh workspace directory for `name`.

        The existence check and the mkdir are two separate steps; a directory
        appearing in between is not detected.
        """
        token = self._tokens.next()
        path = self.root / name / token
        try:
            created = await asyncio.to_thread(_make_fresh_dir, path)
        except OSError as e:
            return Err(
                ReleaseError(
                    kind="workspace_failed",
                    message=f"failed to create workspace: {e}",
                    hint=str(path),
                )
            )
        if not created:
            return Err(
                ReleaseError(
                    kind="workspace_conflict",
                    message=f"Tried to create directory, but it already exists: {path}",
                )
            )

        return Ok(Workspace(path=path, token=token))

    async def remove_workspace(self, workspace: Workspace) -> Result[None, ReleaseError]:
        """Recursively delete a workspace. Failures come back as Err."""
        try:
            await asyncio.to_thread(shutil.rmtree, workspace.path)
        except OSError as e:
            return Err(
                ReleaseError(
                    kind="workspace_failed",
                    message=f"failed to remove workspace: {e}",
                    hint=str(workspace.path),
                )
            )
        return Ok(None)
