"""Script execution inside a named environment."""

from typing import Optional, Protocol, Sequence

from mcp_script_runner.environments.commands import run_micromamba
from mcp_script_runner.errors import ExecutionError
from mcp_script_runner.logging import get_logger
from mcp_script_runner.types import RunnerConfig

logger = get_logger(__name__)


class ScriptRunner(Protocol):
    async def run(
        self, script_path: str, environment_name: str, arguments: Sequence[str]
    ) -> Optional[str]: ...


def build_script_arguments(
    message: str, temperature: float, model_name: str, max_retries: int
) -> list[str]:
    """Fixed positional contract every script is invoked with."""
    return [
        "-i", message,
        "--temperature", str(temperature),
        "--model-name", model_name,
        "--max-retries", str(max_retries),
    ]


class MicromambaScriptRunner:
    """Runs ``python <script>`` through ``micromamba run``."""

    def __init__(self, config: RunnerConfig):
        self.config = config

    async def run(
        self, script_path: str, environment_name: str, arguments: Sequence[str]
    ) -> Optional[str]:
        try:
            returncode, stdout, stderr = await run_micromamba(
                self.config,
                ["run", "-n", environment_name, "python", script_path, *arguments],
            )
        except OSError as e:
            raise ExecutionError(script_path, stderr=str(e)) from e

        if returncode != 0:
            raise ExecutionError(
                script_path,
                returncode=returncode,
                stderr=stderr.decode(errors="replace") if stderr else "",
            )

        output = stdout.decode(errors="replace").strip() if stdout else ""
        logger.debug({"event": "script_output", "script": script_path, "size": len(output)})
        return output or None
