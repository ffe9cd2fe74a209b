"""Spawn one shell process per accepted command, bounded by a timeout."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Optional, Sequence

from shellgate.core.errors import ProcessStartError, ProcessTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionResult:
    exit_code: int
    stdout: str
    stderr: str


async def run_shell(
    argv: Sequence[str],
    *,
    shell: str,
    cwd: Optional[str],
    timeout_seconds: float,
    env: Optional[dict[str, str]] = None,
) -> ExecutionResult:
    """
    Run argv in cwd and collect its output. Any exit code is a result; failing
    to start raises ProcessStartError and running past the timeout kills the
    process and raises ProcessTimeoutError.
    """
    run_env = dict(os.environ)
    if env:
        run_env.update(env)
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=cwd or None,
            env=run_env,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ProcessStartError(f"Failed to start {shell} process: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        try:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
        except ProcessLookupError:
            pass
        logger.warning("%s process killed after %ss", shell, timeout_seconds)
        raise ProcessTimeoutError(shell, timeout_seconds) from None
    return ExecutionResult(
        exit_code=proc.returncode if proc.returncode is not None else -1,
        stdout=(stdout or b"").decode("utf-8", errors="replace"),
        stderr=(stderr or b"").decode("utf-8", errors="replace"),
    )
