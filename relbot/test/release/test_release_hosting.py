from __future__ import annotations

import json
from pathlib import Path

import pytest

from relbot.core.result import Err, Ok, Result
from relbot.platform.process import ProcessError
from relbot.release import hosting as hosting_mod
from relbot.release.hosting import GithubHost
from relbot.release.model import RepoCommit


def _err(cmd: list[str], stderr: str) -> Err[ProcessError]:
    return Err(ProcessError(command=tuple(cmd), returncode=1, stdout="", stderr=stderr))


class _Scripted:
    def __init__(self, responses: list[Result[str, ProcessError] | str]) -> None:
        self.responses = responses
        self.calls: list[list[str]] = []

    async def __call__(self, cmd: list[str], cwd: Path, env=None):  # noqa: ANN001
        del cwd, env
        self.calls.append(cmd)
        nxt = self.responses.pop(0)
        if isinstance(nxt, str):
            return _err(cmd, nxt)
        return nxt


def _commit(sha: str, message: str) -> dict[str, object]:
    return {"sha": sha, "commit": {"message": message}}


@pytest.mark.asyncio
async def test_create_release_posts_draft(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = _Scripted([Ok(json.dumps({"html_url": "https://github.com/acme/widget/releases/1"}))])
    monkeypatch.setattr(hosting_mod, "run_process", fake)

    result = await GithubHost(cwd=tmp_path).create_release(
        "acme", "widget", tag_name="v1.2.4", name="brave-falcon", body="# notes"
    )

    assert isinstance(result, Ok)
    assert result.value == "https://github.com/acme/widget/releases/1"
    cmd = fake.calls[0]
    assert cmd[:5] == ["gh", "api", "--method", "POST", "repos/acme/widget/releases"]
    assert "tag_name=v1.2.4" in cmd
    assert "name=brave-falcon" in cmd
    assert "body=# notes" in cmd
    assert "draft=true" in cmd


@pytest.mark.asyncio
async def test_create_release_is_not_retried(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = _Scripted(["HTTP 503 Service Unavailable"])
    monkeypatch.setattr(hosting_mod, "run_process", fake)

    result = await GithubHost(cwd=tmp_path).create_release(
        "acme", "widget", tag_name="v1.2.4", name="brave-falcon", body=""
    )

    assert isinstance(result, Err)
    assert result.error.kind == "hosting_api"
    assert len(fake.calls) == 1


@pytest.mark.parametrize(
    ("stderr", "kind"),
    [
        ("gh: Resource not accessible by integration (HTTP 403)", "hosting_permission"),
        ("gh: API rate limit exceeded (HTTP 403)", "hosting_rate_limited"),
        ("gh: Validation Failed (HTTP 422)\ntag_name already_exists", "hosting_name_collision"),
    ],
)
@pytest.mark.asyncio
async def test_create_release_error_kinds(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, stderr: str, kind: str
) -> None:
    monkeypatch.setattr(hosting_mod, "run_process", _Scripted([stderr]))

    result = await GithubHost(cwd=tmp_path).create_release(
        "acme", "widget", tag_name="v1.2.4", name="brave-falcon", body=""
    )

    assert isinstance(result, Err)
    assert result.error.kind == kind


@pytest.mark.asyncio
async def test_list_release_names(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    fake = _Scripted([Ok("brave-falcon\nquiet-otter\n\n")])
    monkeypatch.setattr(hosting_mod, "run_process", fake)

    result = await GithubHost(cwd=tmp_path).list_release_names("acme", "widget")

    assert isinstance(result, Ok)
    assert result.value == {"brave-falcon", "quiet-otter"}
    assert "--paginate" in fake.calls[0]


@pytest.mark.asyncio
async def test_list_release_names_gateway_error_is_not_retried(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    fake = _Scripted(["HTTP 502 Bad Gateway", Ok("brave-falcon\n")])
    monkeypatch.setattr(hosting_mod, "run_process", fake)

    result = await GithubHost(cwd=tmp_path).list_release_names("acme", "widget")

    assert isinstance(result, Err)
    assert result.error.kind == "hosting_api"
    assert len(fake.calls) == 1


@pytest.mark.asyncio
async def test_commits_since_is_newest_first(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    payload = {"commits": [_commit("a" * 40, "first\n\nbody"), _commit("b" * 40, "second")]}
    fake = _Scripted([Ok(json.dumps(payload))])
    monkeypatch.setattr(hosting_mod, "run_process", fake)

    result = await GithubHost(cwd=tmp_path).commits_since(
        "acme", "widget", base="v1.2.3", head="master", limit=10
    )

    assert isinstance(result, Ok)
    assert result.value == [RepoCommit("b" * 40, "second"), RepoCommit("a" * 40, "first")]
    assert fake.calls[0] == ["gh", "api", "repos/acme/widget/compare/v1.2.3...master"]


@pytest.mark.asyncio
async def test_commits_since_falls_back_when_base_is_unknown(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    fake = _Scripted(
        [
            "gh: Not Found (HTTP 404)",
            Ok(json.dumps([_commit("c" * 40, "initial commit")])),
        ]
    )
    monkeypatch.setattr(hosting_mod, "run_process", fake)

    result = await GithubHost(cwd=tmp_path).commits_since(
        "acme", "widget", base="v0.0.0", head="master", limit=5
    )

    assert isinstance(result, Ok)
    assert result.value == [RepoCommit("c" * 40, "initial commit")]
    assert fake.calls[1] == ["gh", "api", "repos/acme/widget/commits?sha=master&per_page=5"]
