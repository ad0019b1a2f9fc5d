"""Async wrapper for the external CLI tools used during extraction."""

import asyncio
import contextlib
import logging
import os
from typing import Dict, List, Optional

from scrapbook.core.errors import UpstreamFetchFailed

logger = logging.getLogger(__name__)


async def run_command(
    cmd: List[str],
    *,
    timeout: float,
    env: Optional[Dict[str, str]] = None,
) -> str:
    """Run ``cmd`` and return its decoded stdout.

    ``env`` is layered on top of the current process environment.

    Raises:
        UpstreamFetchFailed: The executable is missing, exits non-zero, or
            does not finish within ``timeout`` seconds.
    """
    merged_env = {**os.environ, **(env or {})}
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=merged_env,
        )
    except FileNotFoundError:
        raise UpstreamFetchFailed(f"Command not found: {cmd[0]}")

    try:
        stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
            await proc.wait()
        raise UpstreamFetchFailed(f"{cmd[0]} timed out after {timeout:.0f}s")

    stdout = (stdout_b or b"").decode("utf-8", errors="replace")
    stderr = (stderr_b or b"").decode("utf-8", errors="replace").strip()

    if proc.returncode != 0:
        message = f"{cmd[0]} exited with status {proc.returncode}"
        if stderr:
            message = f"{message}: {stderr}"
        logger.warning(message)
        raise UpstreamFetchFailed(message)

    return stdout
