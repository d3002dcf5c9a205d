from __future__ import annotations

from pathlib import Path

import pytest

from relbot.core.result import Err, Ok
from relbot.platform.process import run


@pytest.mark.asyncio
async def test_run_returns_stdout(tmp_path: Path) -> None:
    result = await run(["sh", "-c", "printf hello"], cwd=tmp_path)

    assert isinstance(result, Ok)
    assert result.value == "hello"


@pytest.mark.asyncio
async def test_run_layers_env_over_current(tmp_path: Path) -> None:
    result = await run(["sh", "-c", 'printf "%s" "$RELBOT_TEST_VALUE"'], cwd=tmp_path, env={"RELBOT_TEST_VALUE": "x1"})

    assert isinstance(result, Ok)
    assert result.value == "x1"


@pytest.mark.asyncio
async def test_run_nonzero_exit(tmp_path: Path) -> None:
    result = await run(["sh", "-c", "echo nope >&2; exit 3"], cwd=tmp_path)

    assert isinstance(result, Err)
    assert result.error.returncode == 3
    assert result.error.output == "nope"


@pytest.mark.asyncio
async def test_run_missing_binary(tmp_path: Path) -> None:
    result = await run(["relbot-no-such-binary"], cwd=tmp_path)

    assert isinstance(result, Err)
    assert result.error.returncode == -1

