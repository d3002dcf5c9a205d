from __future__ import annotations

import os
import stat
from pathlib import Path

from relbot.core.config import Credentials
from relbot.git.credentials import ASKPASS_SECRET_ENV, SshKeyCredentials


def _creds(tmp_path: Path) -> SshKeyCredentials:
    return SshKeyCredentials(
        Credentials(
            passphrase="s3cret",
            public_key=tmp_path / "ssh-keys" / "relbot.pub",
            private_key=tmp_path / "ssh-keys" / "relbot",
        ),
        askpass_path=tmp_path / "tmp" / ".askpass",
    )


def test_transport_env_pins_key_and_passphrase(tmp_path: Path) -> None:
    env = _creds(tmp_path).transport_env()

    assert f"-i {tmp_path / 'ssh-keys' / 'relbot'}" in env["GIT_SSH_COMMAND"]
    assert "IdentitiesOnly=yes" in env["GIT_SSH_COMMAND"]
    assert env["SSH_ASKPASS"] == str(tmp_path / "tmp" / ".askpass")
    assert env["SSH_ASKPASS_REQUIRE"] == "force"
    assert env[ASKPASS_SECRET_ENV] == "s3cret"


def test_askpass_helper_is_private_executable(tmp_path: Path) -> None:
    creds = _creds(tmp_path)

    creds.install_askpass()

    mode = stat.S_IMODE(os.stat(creds.askpass_path).st_mode)
    assert mode == 0o700
    script = creds.askpass_path.read_text(encoding="utf-8")
    assert script.startswith("#!/bin/sh")
    assert f"${ASKPASS_SECRET_ENV}" in script
    assert "s3cret" not in script


def test_transport_env_installs_missing_helper(tmp_path: Path) -> None:
    creds = _creds(tmp_path)
    assert not creds.askpass_path.exists()

    creds.transport_env()

    assert creds.askpass_path.is_file()
