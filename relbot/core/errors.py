"""Exit codes for relbot commands.

Each release error kind maps onto one of these codes so a failed CLI run
tells the calling shell what sort of problem occurred.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes.

    - 0: Success
    - 1: User error (bad input, cancelled conversation)
    - 2: Environment error (missing secret, missing keys, bad config)
    - 3: Release error (commit, tag or version bump failed)
    - 4: Network error (clone, push or hosting API failed)
    - 5: I/O error (workspace could not be created)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    RELEASE_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
