"""Result type for explicit error handling.

Every pipeline step returns either `Ok(value)` or `Err(error)` instead of
raising, so a failure travels back to the conversation layer untouched.

Usage:
    match await client.clone_repository(owner, repo, target):
        case Ok(handle):
            print(f"cloned into {handle.path}")
        case Err(error):
            print(f"clone failed: {error.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A successful outcome."""

    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """A failed outcome; callers pass `error` along unchanged."""

    error: E


Result: TypeAlias = Ok[T] | Err[E]
