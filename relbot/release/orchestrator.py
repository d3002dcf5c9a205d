"""The release pipeline.

`release_and_tag` runs, strictly in order:

1. create a workspace
2. clone the repository into it
3. bump the version in the clone
4. pick a release name unused by earlier releases
5. render release notes
6. commit, tag and push
7. remove the workspace (best-effort)
8. create a draft release on the host

The first failing step ends the run and its error is returned unchanged.
Nothing is undone: once step 6 has pushed, the commit and tag stay on the
remote even if step 8 fails. Workspace removal runs whenever a workspace was
created, including after a failure in steps 2-6; a removal failure is only
logged and never replaces the result of the run.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from relbot.core.result import Err, Ok, Result
from relbot.core.workspace import Workspace
from relbot.output.console import ConsoleProtocol, Style
from relbot.release.errors import ReleaseError
from relbot.release.hosting import ReleaseHost
from relbot.release.model import ReleaseRecord, ReleaseRequest, RepositoryHandle
from relbot.release.naming import ReleaseNamer
from relbot.release.notes import NotesGenerator
from relbot.release.version import VersionResolver

__all__ = ["ReleaseDeps", "release_and_tag"]


class WorkspaceAllocator(Protocol):
    async def create_workspace(self, name: str) -> Result[Workspace, ReleaseError]: ...

    async def remove_workspace(self, workspace: Workspace) -> Result[None, ReleaseError]: ...


class RepositoryGateway(Protocol):
    async def clone_repository(
        self, owner: str, repo: str, target: Path
    ) -> Result[RepositoryHandle, ReleaseError]: ...

    async def commit_and_tag(
        self, handle: RepositoryHandle, tag_name: str, release_name: str
    ) -> Result[str, ReleaseError]: ...


@dataclass(frozen=True, slots=True)
class ReleaseDeps:
    """Everything one pipeline run talks to. Built once at startup."""

    workspaces: WorkspaceAllocator
    repositories: RepositoryGateway
    versions: VersionResolver
    namer: ReleaseNamer
    notes: NotesGenerator
    host: ReleaseHost
    console: ConsoleProtocol


@dataclass(frozen=True, slots=True)
class _Pushed:
    version: str
    release_name: str
    release_notes: str


async def _prepare_and_push(
    request: ReleaseRequest, workspace: Workspace, deps: ReleaseDeps
) -> Result[_Pushed, ReleaseError]:
    console = deps.console

    cloned = await deps.repositories.clone_repository(request.owner, request.repo, workspace.path)
    if isinstance(cloned, Err):
        return cloned
    handle = cloned.value

    bumped = await deps.versions.resolve(handle.path, request.bump)
    if isinstance(bumped, Err):
        return bumped
    version = bumped.value.tag
    console.print(f"version: {bumped.value.previous_tag} -> {version}", Style.DIM)

    named = await deps.namer.unique_name(request.owner, request.repo)
    if isinstance(named, Err):
        return named
    release_name = named.value
    console.print(f"release name: {release_name}", Style.DIM)

    notes = await deps.notes.generate(
        request.owner,
        request.repo,
        version=version,
        release_name=release_name,
        previous_tag=bumped.value.previous_tag,
        branch=handle.branch,
    )
    if isinstance(notes, Err):
        return notes

    pushed = await deps.repositories.commit_and_tag(handle, version, release_name)
    if isinstance(pushed, Err):
        return pushed
    console.print(f"pushed {version} ({pushed.value[:8]}) to {handle.slug}", Style.DIM)

    return Ok(_Pushed(version=version, release_name=release_name, release_notes=notes.value))


async def _cleanup(workspace: Workspace, deps: ReleaseDeps) -> None:
    removed = await deps.workspaces.remove_workspace(workspace)
    if isinstance(removed, Err):
        deps.console.warning(removed.error.pretty())


async def release_and_tag(
    request: ReleaseRequest, deps: ReleaseDeps
) -> Result[ReleaseRecord, ReleaseError]:
    """Cut one release of `request.owner/request.repo`.

    Returns:
        Ok(ReleaseRecord) when every step succeeded, otherwise the Err of the
        first step that failed.
    """
    console = deps.console
    console.header(f"Release {request.slug} ({request.release_type} -> {request.bump})")

    created = await deps.workspaces.create_workspace(request.repo)
    if isinstance(created, Err):
        return created
    workspace = created.value
    console.print(f"workspace: {workspace.path}", Style.DIM)

    pushed = await _prepare_and_push(request, workspace, deps)
    await _cleanup(workspace, deps)
    if isinstance(pushed, Err):
        return pushed
    p = pushed.value

    release = await deps.host.create_release(
        request.owner,
        request.repo,
        tag_name=p.version,
        name=p.release_name,
        body=p.release_notes,
        draft=True,
    )
    if isinstance(release, Err):
        console.warning(f"{p.version} is tagged and pushed on {request.slug} but has no release")
        return release

    console.success(f"{request.slug} {p.version} {p.release_name}: {release.value}")
    return Ok(
        ReleaseRecord(
            version=p.version,
            release_name=p.release_name,
            release_notes=p.release_notes,
            release_url=release.value,
        )
    )
