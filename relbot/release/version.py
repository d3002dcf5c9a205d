"""Next-version resolution for a cloned repository.

The default resolver follows `npm version <bump> --no-git-tag-version`: it
reads `version` from `package.json`, bumps it, and writes the new value
back into `package.json` and, when present, `package-lock.json`. Those
edits are what the release commit picks up.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from relbot.core.result import Err, Ok, Result
from relbot.core.structured import as_str_dict, get_str, get_table
from relbot.platform.files import atomic_write_text
from relbot.release.errors import ReleaseError
from relbot.release.model import ReleaseBump
from relbot.release.semver import SemVer, parse_version

__all__ = ["PackageJsonVersionResolver", "VersionBump", "VersionResolver"]


@dataclass(frozen=True, slots=True)
class VersionBump:
    previous: SemVer
    current: SemVer

    @property
    def tag(self) -> str:
        return self.current.to_tag()

    @property
    def previous_tag(self) -> str:
        return self.previous.to_tag()


class VersionResolver(Protocol):
    async def resolve(self, repo_root: Path, bump: ReleaseBump) -> Result[VersionBump, ReleaseError]:
        ...


def _load_json(path: Path) -> Result[dict[str, object], ReleaseError]:
    try:
        obj: object = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(ReleaseError(kind="version_failed", message=f"missing {path.name}", hint=str(path)))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        return Err(
            ReleaseError(kind="version_failed", message=f"failed to read {path.name}: {e}", hint=str(path))
        )

    data = as_str_dict(obj)
    if data is None:
        return Err(ReleaseError(kind="version_failed", message=f"{path.name} root must be an object"))
    return Ok(data)


def _dump_json(path: Path, data: dict[str, object]) -> Result[None, ReleaseError]:
    try:
        atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
    except OSError as e:
        return Err(
            ReleaseError(kind="version_failed", message=f"failed to write {path.name}: {e}", hint=str(path))
        )
    return Ok(None)


class PackageJsonVersionResolver:
    def __init__(self, *, manifest: str = "package.json", lockfile: str = "package-lock.json") -> None:
        self._manifest = manifest
        self._lockfile = lockfile

    async def resolve(self, repo_root: Path, bump: ReleaseBump) -> Result[VersionBump, ReleaseError]:
        return await asyncio.to_thread(self._resolve_sync, repo_root, bump)

    def _resolve_sync(self, repo_root: Path, bump: ReleaseBump) -> Result[VersionBump, ReleaseError]:
        manifest_path = repo_root / self._manifest
        manifest = _load_json(manifest_path)
        if isinstance(manifest, Err):
            return manifest

        raw = get_str(manifest.value, "version")
        previous = parse_version(raw) if raw is not None else None
        if previous is None:
            return Err(
                ReleaseError(
                    kind="version_failed",
                    message=f"invalid version in {self._manifest}: {raw!r}",
                    hint="Expected MAJOR.MINOR.PATCH",
                )
            )

        current = previous.bump(bump)
        manifest.value["version"] = str(current)
        written = _dump_json(manifest_path, manifest.value)
        if isinstance(written, Err):
            return written

        lock_path = repo_root / self._lockfile
        if lock_path.is_file():
            lock = _load_json(lock_path)
            if isinstance(lock, Err):
                return lock
            lock.value["version"] = str(current)
            # lockfileVersion >= 2 mirrors the root package under packages[""]
            packages = get_table(lock.value, "packages")
            root_pkg = get_table(packages, "") if packages is not None else None
            if root_pkg is not None and "version" in root_pkg:
                root_pkg["version"] = str(current)
            written = _dump_json(lock_path, lock.value)
            if isinstance(written, Err):
                return written

        return Ok(VersionBump(previous=previous, current=current))
