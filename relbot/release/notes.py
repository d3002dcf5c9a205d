from __future__ import annotations

from typing import Protocol

from relbot.core.result import Err, Ok, Result
from relbot.release.errors import ReleaseError
from relbot.release.hosting import ReleaseHost
from relbot.release.model import RepoCommit

__all__ = ["NotesGenerator", "HostHistoryNotes", "render_notes"]

NOTES_COMMIT_LIMIT = 100


class NotesGenerator(Protocol):
    async def generate(
        self,
        owner: str,
        repo: str,
        *,
        version: str,
        release_name: str,
        previous_tag: str,
        branch: str,
    ) -> Result[str, ReleaseError]: ...


def _commit_url(slug: str, sha: str) -> str:
    return f"https://github.com/{slug}/commit/{sha}"


def render_notes(
    *,
    slug: str,
    version: str,
    release_name: str,
    previous_tag: str,
    commits: list[RepoCommit],
) -> str:
    lines: list[str] = []
    lines.append(f"# {version} {release_name}")
    lines.append("")
    lines.append(f"## Changes since {previous_tag}")
    if not commits:
        lines.append("- No changes recorded.")
    for c in commits:
        lines.append(f"- {c.message} ([{c.short_sha}]({_commit_url(slug, c.sha)}))")
    return "\n".join(lines).rstrip() + "\n"


class HostHistoryNotes:
    """Notes built from the commits the host reports since the last tag."""

    def __init__(self, host: ReleaseHost, *, limit: int = NOTES_COMMIT_LIMIT) -> None:
        self._host = host
        self._limit = limit

    async def generate(
        self,
        owner: str,
        repo: str,
        *,
        version: str,
        release_name: str,
        previous_tag: str,
        branch: str,
    ) -> Result[str, ReleaseError]:
        commits = await self._host.commits_since(
            owner, repo, base=previous_tag, head=branch, limit=self._limit
        )
        if isinstance(commits, Err):
            return commits

        return Ok(
            render_notes(
                slug=f"{owner}/{repo}",
                version=version,
                release_name=release_name,
                previous_tag=previous_tag,
                commits=commits.value,
            )
        )
