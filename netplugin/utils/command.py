"""Async runner for host networking tools (ovs-vsctl, ip, nsenter)."""

from __future__ import annotations

import asyncio
from typing import Sequence

import structlog

from netplugin.errors import CommandError

logger = structlog.get_logger()


async def run_command(argv: Sequence[str], *, timeout: float) -> str:
    """Run a command and return its stripped stdout.

    Raises:
        CommandError: If the binary is missing, the command times out or
            exits non-zero
    """
    argv = list(argv)
    logger.debug("command.run", argv=argv)

    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise CommandError(f"{argv[0]} not found", details={"argv": argv}) from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        try:
            process.kill()
            await process.wait()
        except ProcessLookupError:
            pass
        raise CommandError(
            f"{argv[0]} timed out after {timeout}s",
            details={"argv": argv, "timeout": timeout},
        ) from e

    if process.returncode:
        err = stderr.decode("utf-8", errors="replace").strip()
        raise CommandError(
            f"{argv[0]} exited with {process.returncode}: {err}",
            details={"argv": argv, "returncode": process.returncode, "stderr": err},
        )

    return stdout.decode("utf-8", errors="replace").strip()
