from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from relbot.core.result import Err, Ok, Result
from relbot.core.workspace import Workspace
from relbot.output.console import MockConsole
from relbot.release.errors import ReleaseError
from relbot.release.model import ReleaseBump, ReleaseRequest, RepositoryHandle
from relbot.release.orchestrator import ReleaseDeps, release_and_tag
from relbot.release.semver import SemVer, parse_version
from relbot.release.version import VersionBump


@dataclass
class _Recorder:
    calls: list[str] = field(default_factory=list)


@dataclass
class _Workspaces:
    rec: _Recorder
    root: Path
    fail_create: ReleaseError | None = None
    fail_remove: ReleaseError | None = None
    removed: list[Workspace] = field(default_factory=list)

    async def create_workspace(self, name: str) -> Result[Workspace, ReleaseError]:
        self.rec.calls.append("create_workspace")
        if self.fail_create is not None:
            return Err(self.fail_create)
        return Ok(Workspace(path=self.root / name / "tok-1", token="tok-1"))

    async def remove_workspace(self, workspace: Workspace) -> Result[None, ReleaseError]:
        self.rec.calls.append("remove_workspace")
        self.removed.append(workspace)
        if self.fail_remove is not None:
            return Err(self.fail_remove)
        return Ok(None)


@dataclass
class _Repos:
    rec: _Recorder
    fail_clone: ReleaseError | None = None
    fail_push: ReleaseError | None = None
    commits: list[tuple[str, str]] = field(default_factory=list)

    async def clone_repository(
        self, owner: str, repo: str, target: Path
    ) -> Result[RepositoryHandle, ReleaseError]:
        self.rec.calls.append("clone_repository")
        if self.fail_clone is not None:
            return Err(self.fail_clone)
        return Ok(RepositoryHandle(path=target, slug=f"{owner}/{repo}", branch="master"))

    async def commit_and_tag(
        self, handle: RepositoryHandle, tag_name: str, release_name: str
    ) -> Result[str, ReleaseError]:
        self.rec.calls.append("commit_and_tag")
        if self.fail_push is not None:
            return Err(self.fail_push)
        self.commits.append((tag_name, f"{tag_name} {release_name}"))
        return Ok("a" * 40)


@dataclass
class _Versions:
    rec: _Recorder
    previous: SemVer

    async def resolve(self, repo_root: Path, bump: ReleaseBump) -> Result[VersionBump, ReleaseError]:
        self.rec.calls.append("resolve_version")
        return Ok(VersionBump(previous=self.previous, current=self.previous.bump(bump)))


@dataclass
class _Namer:
    rec: _Recorder
    name: str = "brave-falcon"

    async def unique_name(self, owner: str, repo: str) -> Result[str, ReleaseError]:
        self.rec.calls.append("unique_name")
        return Ok(self.name)


@dataclass
class _Notes:
    rec: _Recorder

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
        self.rec.calls.append("generate_notes")
        return Ok(f"# {version} {release_name}\n\nsince {previous_tag} on {branch}\n")


@dataclass
class _Host:
    rec: _Recorder
    fail: ReleaseError | None = None
    created: list[dict[str, object]] = field(default_factory=list)

    async def list_release_names(self, owner: str, repo: str) -> Result[set[str], ReleaseError]:
        return Ok(set())

    async def commits_since(self, owner, repo, *, base, head, limit):  # noqa: ANN001
        return Ok([])

    async def create_release(
        self,
        owner: str,
        repo: str,
        *,
        tag_name: str,
        name: str,
        body: str,
        draft: bool = True,
    ) -> Result[str, ReleaseError]:
        self.rec.calls.append("create_release")
        if self.fail is not None:
            return Err(self.fail)
        self.created.append(
            {"owner": owner, "repo": repo, "tag_name": tag_name, "name": name, "body": body, "draft": draft}
        )
        return Ok(f"https://github.com/{owner}/{repo}/releases/tag/untagged-1")


@dataclass
class _World:
    rec: _Recorder
    workspaces: _Workspaces
    repos: _Repos
    host: _Host
    console: MockConsole
    deps: ReleaseDeps


def _world(tmp_path: Path, *, previous: str = "1.2.3") -> _World:
    rec = _Recorder()
    workspaces = _Workspaces(rec=rec, root=tmp_path)
    repos = _Repos(rec=rec)
    host = _Host(rec=rec)
    console = MockConsole()
    prev = parse_version(previous)
    assert prev is not None
    deps = ReleaseDeps(
        workspaces=workspaces,
        repositories=repos,
        versions=_Versions(rec=rec, previous=prev),
        namer=_Namer(rec=rec),
        notes=_Notes(rec=rec),
        host=host,
        console=console,
    )
    return _World(rec=rec, workspaces=workspaces, repos=repos, host=host, console=console, deps=deps)


_BUGFIX = ReleaseRequest(owner="acme", repo="widget", release_type="bugfix")


@pytest.mark.asyncio
async def test_bugfix_release_scenario(tmp_path: Path) -> None:
    w = _world(tmp_path)

    result = await release_and_tag(_BUGFIX, w.deps)

    assert isinstance(result, Ok)
    record = result.value
    assert record.version == "v1.2.4"
    assert record.release_name == "brave-falcon"
    assert record.release_url.startswith("https://github.com/acme/widget/")
    assert w.repos.commits == [("v1.2.4", "v1.2.4 brave-falcon")]
    assert w.host.created == [
        {
            "owner": "acme",
            "repo": "widget",
            "tag_name": "v1.2.4",
            "name": "brave-falcon",
            "body": record.release_notes,
            "draft": True,
        }
    ]
    assert w.rec.calls == [
        "create_workspace",
        "clone_repository",
        "resolve_version",
        "unique_name",
        "generate_notes",
        "commit_and_tag",
        "remove_workspace",
        "create_release",
    ]


@pytest.mark.asyncio
async def test_feature_release_bumps_minor_and_is_greater(tmp_path: Path) -> None:
    w = _world(tmp_path, previous="1.2.3")

    result = await release_and_tag(
        ReleaseRequest(owner="acme", repo="widget", release_type="feature"), w.deps
    )

    assert isinstance(result, Ok)
    assert re.fullmatch(r"v\d+\.\d+\.\d+", result.value.version)
    new = parse_version(result.value.version.removeprefix("v"))
    assert new == SemVer(1, 3, 0)
    assert new > SemVer(1, 2, 3)


@pytest.mark.asyncio
async def test_cleanup_removes_the_created_workspace(tmp_path: Path) -> None:
    w = _world(tmp_path)

    await release_and_tag(_BUGFIX, w.deps)

    assert [ws.path for ws in w.workspaces.removed] == [tmp_path / "widget" / "tok-1"]


@pytest.mark.asyncio
async def test_clone_failure_short_circuits(tmp_path: Path) -> None:
    w = _world(tmp_path)
    err = ReleaseError(kind="auth_failed", message="failed to clone acme/widget")
    w.repos.fail_clone = err

    result = await release_and_tag(_BUGFIX, w.deps)

    assert isinstance(result, Err)
    assert result.error is err
    assert "commit_and_tag" not in w.rec.calls
    assert "create_release" not in w.rec.calls
    assert w.rec.calls == ["create_workspace", "clone_repository", "remove_workspace"]


@pytest.mark.asyncio
async def test_push_failure_creates_no_release(tmp_path: Path) -> None:
    w = _world(tmp_path)
    err = ReleaseError(kind="push_rejected", message="push rejected (non-fast-forward)")
    w.repos.fail_push = err

    result = await release_and_tag(_BUGFIX, w.deps)

    assert isinstance(result, Err)
    assert result.error is err
    assert "create_release" not in w.rec.calls
    assert w.host.created == []


@pytest.mark.asyncio
async def test_workspace_failure_attempts_no_cleanup(tmp_path: Path) -> None:
    w = _world(tmp_path)
    w.workspaces.fail_create = ReleaseError(kind="workspace_conflict", message="exists")

    result = await release_and_tag(_BUGFIX, w.deps)

    assert isinstance(result, Err)
    assert result.error.kind == "workspace_conflict"
    assert w.rec.calls == ["create_workspace"]


@pytest.mark.asyncio
async def test_cleanup_failure_does_not_change_success(tmp_path: Path) -> None:
    w = _world(tmp_path)
    w.workspaces.fail_remove = ReleaseError(kind="workspace_failed", message="busy")

    result = await release_and_tag(_BUGFIX, w.deps)

    assert isinstance(result, Ok)
    assert result.value.version == "v1.2.4"
    assert w.console.has_warning()


@pytest.mark.asyncio
async def test_cleanup_failure_does_not_mask_pipeline_error(tmp_path: Path) -> None:
    w = _world(tmp_path)
    w.workspaces.fail_remove = ReleaseError(kind="workspace_failed", message="busy")
    push_err = ReleaseError(kind="push_failed", message="network down")
    w.repos.fail_push = push_err

    result = await release_and_tag(_BUGFIX, w.deps)

    assert isinstance(result, Err)
    assert result.error is push_err


@pytest.mark.asyncio
async def test_hosting_failure_after_push_is_returned_unchanged(tmp_path: Path) -> None:
    w = _world(tmp_path)
    err = ReleaseError(kind="hosting_permission", message="forbidden")
    w.host.fail = err

    result = await release_and_tag(_BUGFIX, w.deps)

    assert isinstance(result, Err)
    assert result.error is err
    # the push already happened and stays in place
    assert w.repos.commits == [("v1.2.4", "v1.2.4 brave-falcon")]
    assert w.console.find("has no release")
