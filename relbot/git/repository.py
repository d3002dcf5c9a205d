"""Repository operations for a release.

`RepositoryClient` clones the target repository into a workspace and, once
the version bump is on disk, records it as a commit plus an annotated tag
and pushes both in a single `git push`.

The commit is built from plumbing commands (`write-tree`, `commit-tree`,
`update-ref`) so the author, committer and timestamp are exactly the bot
identity at the current UTC time, independent of any git config on the
host.

Failure kinds stay distinct: staging and tree failures are
`commit_failed`, while push failures are `push_rejected` (non-fast-forward),
`auth_failed` or `push_failed`.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from relbot.core.result import Err, Ok, Result
from relbot.git.credentials import CredentialsProvider
from relbot.output.console import ConsoleProtocol, Style
from relbot.platform.process import ProcessError
from relbot.platform.process import run as run_process
from relbot.release.errors import ReleaseError, ReleaseErrorKind
from relbot.release.model import RepositoryHandle

__all__ = ["RepositoryClient", "BotIdentity", "classify_transport_error"]

_AUTH_MARKERS = (
    "permission denied (publickey",
    "host key verification failed",
    "incorrect passphrase",
    "bad passphrase",
    "load key",
    "authentication failed",
)

_REJECTED_MARKERS = (
    "[rejected]",
    "[remote rejected]",
    "non-fast-forward",
    "fetch first",
    "updates were rejected",
)


def classify_transport_error(
    error: ProcessError, *, fallback: ReleaseErrorKind
) -> ReleaseErrorKind:
    """Pick the error kind for a failed clone or push."""
    text = f"{error.stderr}\n{error.stdout}".lower()
    if any(marker in text for marker in _AUTH_MARKERS):
        return "auth_failed"
    if fallback == "push_failed" and any(marker in text for marker in _REJECTED_MARKERS):
        return "push_rejected"
    return fallback


class BotIdentity:
    """Fixed author/committer used for release commits and tags."""

    def __init__(
        self,
        name: str,
        email: str,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.name = name
        self.email = email
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    def signature_env(self) -> dict[str, str]:
        stamp = f"@{int(self._clock().timestamp())} +0000"
        return {
            "GIT_AUTHOR_NAME": self.name,
            "GIT_AUTHOR_EMAIL": self.email,
            "GIT_AUTHOR_DATE": stamp,
            "GIT_COMMITTER_NAME": self.name,
            "GIT_COMMITTER_EMAIL": self.email,
            "GIT_COMMITTER_DATE": stamp,
        }


class RepositoryClient:
    """Clone, commit, tag and push over SSH."""

    def __init__(
        self,
        *,
        credentials: CredentialsProvider,
        identity: BotIdentity,
        console: ConsoleProtocol,
        host: str = "github.com",
    ) -> None:
        self._credentials = credentials
        self._identity = identity
        self._console = console
        self._host = host

    def remote_url(self, owner: str, repo: str) -> str:
        return f"git@{self._host}:{owner}/{repo}"

    async def clone_repository(
        self, owner: str, repo: str, target: Path
    ) -> Result[RepositoryHandle, ReleaseError]:
        url = self.remote_url(owner, repo)
        self._console.print(f"git clone {url} -> {target}", Style.DIM)

        result = await run_process(
            ["git", "clone", url, str(target)],
            cwd=target.parent,
            env=self._credentials.transport_env(),
        )
        if isinstance(result, Err):
            e = result.error
            kind = classify_transport_error(e, fallback="clone_failed")
            return Err(
                ReleaseError(
                    kind=kind,
                    message=f"failed to clone {owner}/{repo}",
                    hint=e.output or None,
                )
            )

        branch = await self._git(target, ["symbolic-ref", "--short", "HEAD"])
        if isinstance(branch, Err):
            return Err(
                ReleaseError(
                    kind="clone_failed",
                    message=f"cloned {owner}/{repo} has no checked-out branch",
                    hint=branch.error.output or None,
                )
            )

        return Ok(RepositoryHandle(path=target, slug=f"{owner}/{repo}", branch=branch.value))

    async def commit_and_tag(
        self, handle: RepositoryHandle, tag_name: str, release_name: str
    ) -> Result[str, ReleaseError]:
        """Commit every working-tree change, tag it and push both.

        Returns:
            Ok(commit sha) once the push has been accepted.
        """
        message = f"{tag_name} {release_name}"
        root = handle.path
        signature = self._identity.signature_env()

        self._console.print("git add -A", Style.DIM)
        added = await self._git(root, ["add", "-A"])
        if isinstance(added, Err):
            return self._commit_error("git add failed", added.error)

        tree = await self._git(root, ["write-tree"])
        if isinstance(tree, Err):
            return self._commit_error("git write-tree failed", tree.error)

        parent = await self._git(root, ["rev-parse", "HEAD"])
        if isinstance(parent, Err):
            return self._commit_error("failed to resolve HEAD", parent.error)

        self._console.print(f"git commit -m {message}", Style.DIM)
        commit = await self._git(
            root,
            ["commit-tree", tree.value, "-p", parent.value, "-m", message],
            env=signature,
        )
        if isinstance(commit, Err):
            return self._commit_error("git commit-tree failed", commit.error)
        sha = commit.value

        ref = f"refs/heads/{handle.branch}"
        moved = await self._git(root, ["update-ref", ref, sha, parent.value])
        if isinstance(moved, Err):
            return self._commit_error(f"failed to advance {handle.branch}", moved.error)

        self._console.print(f"git tag -a {tag_name}", Style.DIM)
        tagged = await self._git(root, ["tag", "-a", tag_name, "-m", message, sha], env=signature)
        if isinstance(tagged, Err):
            return self._commit_error(f"failed to create tag {tag_name}", tagged.error)

        pushed = await self._push(handle, tag_name)
        if isinstance(pushed, Err):
            return pushed

        return Ok(sha)

    async def _push(self, handle: RepositoryHandle, tag_name: str) -> Result[None, ReleaseError]:
        refspecs = [
            f"refs/heads/{handle.branch}:refs/heads/{handle.branch}",
            f"refs/tags/{tag_name}:refs/tags/{tag_name}",
        ]
        self._console.print(f"git push origin {' '.join(refspecs)}", Style.DIM)
        result = await run_process(
            ["git", "-C", str(handle.path), "push", "origin", *refspecs],
            cwd=handle.path,
            env=self._credentials.transport_env(),
        )
        if isinstance(result, Err):
            e = result.error
            kind = classify_transport_error(e, fallback="push_failed")
            message = (
                f"push to {handle.slug} rejected (non-fast-forward)"
                if kind == "push_rejected"
                else f"git push to {handle.slug} failed"
            )
            return Err(ReleaseError(kind=kind, message=message, hint=e.output or None))
        return Ok(None)

    def _commit_error(self, message: str, error: ProcessError) -> Err[ReleaseError]:
        return Err(ReleaseError(kind="commit_failed", message=message, hint=error.output or None))

    async def _git(
        self,
        root: Path,
        args: list[str],
        *,
        env: dict[str, str] | None = None,
    ) -> Result[str, ProcessError]:
        """Run a local git command in `root`; stdout is stripped."""
        result = await run_process(
            ["git", "-C", str(root), *args],
            cwd=root,
            env=env,
        )
        if isinstance(result, Err):
            return result
        return Ok(result.value.strip())
