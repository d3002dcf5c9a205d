"""Transport credentials for git over SSH.

The git CLI has no credential callback for SSH keys, so the provider hands
back environment variables instead: `GIT_SSH_COMMAND` pins the private key,
and `SSH_ASKPASS` points ssh at a tiny helper script that prints the
passphrase from the child environment. The repository client asks the
provider for a fresh environment on every clone and push.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Protocol

from relbot.core.config import Credentials
from relbot.platform.files import atomic_write_text

__all__ = ["CredentialsProvider", "SshKeyCredentials", "ASKPASS_SECRET_ENV"]

ASKPASS_SECRET_ENV = "RELBOT_ASKPASS_SECRET"

_ASKPASS_SCRIPT = f"""#!/bin/sh
printf '%s\\n' "${ASKPASS_SECRET_ENV}"
"""


class CredentialsProvider(Protocol):
    def transport_env(self) -> dict[str, str]:
        """Environment for one authenticated git operation."""
        ...


class SshKeyCredentials:
    """Key-pair credentials gated by a passphrase."""

    def __init__(self, credentials: Credentials, *, askpass_path: Path) -> None:
        self._credentials = credentials
        self._askpass_path = askpass_path

    @property
    def askpass_path(self) -> Path:
        return self._askpass_path

    def install_askpass(self) -> None:
        """Write the askpass helper. Called once at startup."""
        atomic_write_text(self._askpass_path, _ASKPASS_SCRIPT, mode=0o700)

    def ssh_command(self) -> str:
        key = shlex.quote(str(self._credentials.private_key))
        return (
            f"ssh -i {key} -o IdentitiesOnly=yes "
            "-o StrictHostKeyChecking=accept-new -o BatchMode=no"
        )

    def transport_env(self) -> dict[str, str]:
        if not self._askpass_path.is_file():
            self.install_askpass()
        return {
            "GIT_SSH_COMMAND": self.ssh_command(),
            "GIT_TERMINAL_PROMPT": "0",
            "SSH_ASKPASS": str(self._askpass_path),
            "SSH_ASKPASS_REQUIRE": "force",
            "DISPLAY": ":0",
            ASKPASS_SECRET_ENV: self._credentials.passphrase,
        }
