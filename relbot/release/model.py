from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal


ReleaseType = Literal["feature", "bugfix"]
ReleaseBump = Literal["minor", "patch"]

RELEASE_TYPE_BUMPS: dict[ReleaseType, ReleaseBump] = {
    "feature": "minor",
    "bugfix": "patch",
}


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """What to release. Never mutated once the pipeline starts."""

    owner: str
    repo: str
    release_type: ReleaseType

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def bump(self) -> ReleaseBump:
        return RELEASE_TYPE_BUMPS[self.release_type]


@dataclass(frozen=True, slots=True)
class RepositoryHandle:
    path: Path
    slug: str  # owner/name
    branch: str


@dataclass(frozen=True, slots=True)
class RepoCommit:
    sha: str
    message: str

    @property
    def short_sha(self) -> str:
        return self.sha[:8]


@dataclass(frozen=True, slots=True)
class ReleaseRecord:
    version: str
    release_name: str
    release_notes: str
    release_url: str
