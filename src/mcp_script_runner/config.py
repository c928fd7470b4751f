"""Runner configuration loading."""

from pathlib import Path
from typing import Optional

import appdirs
from dotenv import dotenv_values

from mcp_script_runner.logging import get_logger
from mcp_script_runner.types import InvocationRequest, RunnerConfig

logger = get_logger(__name__)


def default_root_prefix() -> Path:
    """Platform application-data directory plus ``micromamba``."""
    return Path(appdirs.user_data_dir()) / "micromamba"


def load_config(
    root_prefix: Optional[Path] = None, dotenv_path: Optional[Path] = None
) -> RunnerConfig:
    """Build a RunnerConfig, reading dotenv values into it when a path is given.

    Values are kept on the config and only reach subprocesses; ``os.environ``
    is left untouched. A missing dotenv file is logged and skipped.
    """
    env_vars: dict[str, str] = {}

    if dotenv_path is not None:
        path = Path(dotenv_path)
        if path.is_file():
            env_vars = {k: v for k, v in dotenv_values(path).items() if v is not None}
            logger.debug({"event": "dotenv_loaded", "path": str(path), "keys": sorted(env_vars)})
        else:
            logger.warning({"event": "dotenv_missing", "path": str(path)})

    return RunnerConfig(
        root_prefix=Path(root_prefix) if root_prefix else default_root_prefix(),
        env_vars=env_vars,
    )


def config_for_request(request: InvocationRequest) -> RunnerConfig:
    return load_config(request.root_prefix, request.dotenv_path)
