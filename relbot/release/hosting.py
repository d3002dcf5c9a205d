from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from relbot.core.result import Err, Ok, Result
from relbot.core.structured import as_obj_list, as_str_dict, get_str, get_table
from relbot.platform.process import ProcessError
from relbot.platform.process import run as run_process
from relbot.release.errors import ReleaseError, ReleaseErrorKind
from relbot.release.model import RepoCommit

__all__ = ["GithubHost", "ReleaseHost", "classify_gh_error"]


class ReleaseHost(Protocol):
    async def list_release_names(self, owner: str, repo: str) -> Result[set[str], ReleaseError]: ...

    async def commits_since(
        self, owner: str, repo: str, *, base: str, head: str, limit: int
    ) -> Result[list[RepoCommit], ReleaseError]: ...

    async def create_release(
        self,
        owner: str,
        repo: str,
        *,
        tag_name: str,
        name: str,
        body: str,
        draft: bool = True,
    ) -> Result[str, ReleaseError]: ...


def _is_not_found(error: ReleaseError) -> bool:
    return "http 404" in (error.hint or "").lower()


def classify_gh_error(error: ProcessError) -> ReleaseErrorKind:
    text = f"{error.stderr}\n{error.stdout}".lower()
    if "http 429" in text or "rate limit" in text:
        return "hosting_rate_limited"
    if "http 403" in text or "http 401" in text:
        return "hosting_permission"
    if "http 422" in text and "already_exists" in text:
        return "hosting_name_collision"
    return "hosting_api"


def _parse_commit(item: object) -> RepoCommit | None:
    d = as_str_dict(item)
    if d is None:
        return None
    sha = get_str(d, "sha")
    commit_tbl = get_table(d, "commit")
    if sha is None or commit_tbl is None:
        return None
    msg = get_str(commit_tbl, "message")
    if msg is None:
        return None
    # Keep only the subject line.
    return RepoCommit(sha=sha, message=msg.splitlines()[0].strip())


class GithubHost:
    """GitHub releases through the `gh` CLI.

    `gh` authenticates on its own (`GH_TOKEN` or `gh auth login`); relbot
    never handles the API token.
    """

    def __init__(self, *, cwd: Path) -> None:
        self._cwd = cwd

    async def _gh_read(self, cmd: list[str], *, message: str) -> Result[str, ReleaseError]:
        result = await run_process(cmd, cwd=self._cwd)
        if isinstance(result, Err):
            e = result.error
            return Err(ReleaseError(kind=classify_gh_error(e), message=message, hint=e.output or None))
        return result

    async def _gh_json(self, endpoint: str) -> Result[object, ReleaseError]:
        result = await self._gh_read(["gh", "api", endpoint], message=f"gh api failed: {endpoint}")
        if isinstance(result, Err):
            return result
        try:
            obj: object = json.loads(result.value)
        except json.JSONDecodeError as e:
            return Err(
                ReleaseError(kind="hosting_api", message=f"gh api returned invalid JSON: {e}", hint=endpoint)
            )
        return Ok(obj)

    async def list_release_names(self, owner: str, repo: str) -> Result[set[str], ReleaseError]:
        endpoint = f"repos/{owner}/{repo}/releases?per_page=100"
        result = await self._gh_read(
            ["gh", "api", "--paginate", endpoint, "--jq", ".[].name // empty"],
            message=f"failed to list releases for {owner}/{repo}",
        )
        if isinstance(result, Err):
            return result
        return Ok({line.strip() for line in result.value.splitlines() if line.strip()})

    async def commits_since(
        self, owner: str, repo: str, *, base: str, head: str, limit: int
    ) -> Result[list[RepoCommit], ReleaseError]:
        """Commits reachable from `head` but not `base`, newest first.

        Falls back to the latest `limit` commits on `head` when `base` does
        not exist on the remote (first release).
        """
        obj = await self._gh_json(f"repos/{owner}/{repo}/compare/{base}...{head}")
        if isinstance(obj, Err):
            if not _is_not_found(obj.error):
                return obj
            return await self._recent_commits(owner, repo, head=head, limit=limit)

        data = as_str_dict(obj.value)
        raw = as_obj_list(data.get("commits")) if data is not None else None
        if raw is None:
            return Err(ReleaseError(kind="hosting_api", message=f"unexpected compare payload: {owner}/{repo}"))

        commits = [c for c in (_parse_commit(item) for item in raw) if c is not None]
        # compare lists oldest first
        commits.reverse()
        return Ok(commits[:limit])

    async def _recent_commits(
        self, owner: str, repo: str, *, head: str, limit: int
    ) -> Result[list[RepoCommit], ReleaseError]:
        obj = await self._gh_json(f"repos/{owner}/{repo}/commits?sha={head}&per_page={limit}")
        if isinstance(obj, Err):
            return obj
        raw = as_obj_list(obj.value)
        if raw is None:
            return Err(ReleaseError(kind="hosting_api", message=f"unexpected commits payload: {owner}/{repo}"))
        return Ok([c for c in (_parse_commit(item) for item in raw) if c is not None])

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
        """Create a release and return its `html_url`. Never retried."""
        cmd = [
            "gh",
            "api",
            "--method",
            "POST",
            f"repos/{owner}/{repo}/releases",
            "-f",
            f"tag_name={tag_name}",
            "-f",
            f"name={name}",
            "-f",
            f"body={body}",
            "-F",
            f"draft={'true' if draft else 'false'}",
        ]
        result = await run_process(cmd, cwd=self._cwd)
        if isinstance(result, Err):
            e = result.error
            return Err(
                ReleaseError(
                    kind=classify_gh_error(e),
                    message=f"failed to create release {tag_name} for {owner}/{repo}",
                    hint=e.output or None,
                )
            )

        try:
            obj: object = json.loads(result.value)
        except json.JSONDecodeError as e:
            return Err(ReleaseError(kind="hosting_api", message=f"invalid JSON from create release: {e}"))

        data = as_str_dict(obj)
        url = get_str(data, "html_url") if data is not None else None
        if url is None:
            return Err(ReleaseError(kind="hosting_api", message="create release response has no html_url"))
        return Ok(url)
