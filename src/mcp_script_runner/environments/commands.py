"""Micromamba command execution."""

import asyncio
from typing import Sequence

from mcp_script_runner.logging import get_logger
from mcp_script_runner.types import RunnerConfig

logger = get_logger(__name__)


async def run_micromamba(
    config: RunnerConfig, args: Sequence[str]
) -> tuple[int, bytes, bytes]:
    """Run a micromamba sub-command and return (returncode, stdout, stderr)."""
    cmd = [str(config.binary_path), *args]

    logger.debug({"event": "mamba_cmd_exec", "cmd": cmd})

    process = await asyncio.create_subprocess_exec(
        *cmd,
        env=config.command_env(),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    stdout, stderr = await process.communicate()

    if stdout:
        logger.debug({"event": "mamba_cmd_stdout", "cmd": args[0], "output": stdout.decode(errors="replace")})
    if stderr:
        logger.debug({"event": "mamba_cmd_stderr", "cmd": args[0], "output": stderr.decode(errors="replace")})

    logger.debug({"event": "mamba_cmd_complete", "cmd": args[0], "returncode": process.returncode})

    return process.returncode, stdout, stderr


async def mamba_succeeds(config: RunnerConfig, args: Sequence[str]) -> bool:
    """Run a micromamba sub-command, True on a zero exit code."""
    try:
        returncode, _, stderr = await run_micromamba(config, args)
    except OSError as e:
        logger.error({"event": "mamba_cmd_failed", "cmd": list(args), "error": str(e)})
        return False

    if returncode != 0:
        logger.error(
            {
                "event": "mamba_cmd_failed",
                "cmd": list(args),
                "returncode": returncode,
                "stderr": stderr.decode(errors="replace") if stderr else "",
            }
        )
    return returncode == 0
