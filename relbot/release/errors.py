"""Error types for the release pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from relbot.core.errors import ErrorCode

ReleaseErrorKind = Literal[
    "invalid_input",
    "workspace_conflict",
    "workspace_failed",
    "clone_failed",
    "auth_failed",
    "commit_failed",
    "push_failed",
    "push_rejected",
    "version_failed",
    "naming_failed",
    "hosting_api",
    "hosting_permission",
    "hosting_rate_limited",
    "hosting_name_collision",
]

_EXIT_CODES: dict[str, ErrorCode] = {
    "invalid_input": ErrorCode.USER_ERROR,
    "workspace_conflict": ErrorCode.IO_ERROR,
    "workspace_failed": ErrorCode.IO_ERROR,
    "clone_failed": ErrorCode.NETWORK_ERROR,
    "auth_failed": ErrorCode.ENV_ERROR,
    "commit_failed": ErrorCode.RELEASE_ERROR,
    "push_failed": ErrorCode.NETWORK_ERROR,
    "push_rejected": ErrorCode.RELEASE_ERROR,
    "version_failed": ErrorCode.RELEASE_ERROR,
    "naming_failed": ErrorCode.RELEASE_ERROR,
    "hosting_api": ErrorCode.NETWORK_ERROR,
    "hosting_permission": ErrorCode.ENV_ERROR,
    "hosting_rate_limited": ErrorCode.NETWORK_ERROR,
    "hosting_name_collision": ErrorCode.RELEASE_ERROR,
}


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    Produced by whichever step failed and handed back to the conversation
    layer as-is; nothing in between rewrites it.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message

    @property
    def exit_code(self) -> ErrorCode:
        return _EXIT_CODES.get(self.kind, ErrorCode.RELEASE_ERROR)
