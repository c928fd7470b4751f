"""Environment provisioning capability and its micromamba implementation."""

import json
from pathlib import Path
from typing import List, Protocol, Sequence

from mcp_script_runner.constants import MICROMAMBA_CHANNEL
from mcp_script_runner.environments.binaries import fetch_micromamba, remove_micromamba
from mcp_script_runner.environments.commands import mamba_succeeds, run_micromamba
from mcp_script_runner.logging import get_logger
from mcp_script_runner.types import PackageInstallResult, RunnerConfig

logger = get_logger(__name__)


class EnvironmentProvider(Protocol):
    """Acquires and releases named, versioned runtime environments.

    Every operation reports plain success or failure; callers decide what a
    failure means for their run.
    """

    async def ensure_runtime_binary(self) -> bool: ...

    async def create_environment(self, name: str, language_version: str) -> bool: ...

    async def environment_exists(self, name: str) -> bool: ...

    async def install_packages(
        self, name: str, packages: Sequence[str]
    ) -> List[PackageInstallResult]: ...

    async def destroy_environment(self, name: str) -> bool: ...

    async def remove_runtime_binary(self) -> bool: ...


class MicromambaProvider:
    """EnvironmentProvider backed by a micromamba binary under the root prefix."""

    def __init__(self, config: RunnerConfig):
        self.config = config

    async def ensure_runtime_binary(self) -> bool:
        try:
            path = await fetch_micromamba(self.config)
        except (ValueError, RuntimeError, OSError) as e:
            logger.error({"event": "binary_unavailable", "error": str(e)})
            return False
        return path.exists()

    async def create_environment(self, name: str, language_version: str) -> bool:
        logger.info({"event": "env_create", "name": name, "python": language_version})
        return await mamba_succeeds(
            self.config,
            ["create", "-y", "-n", name, "-c", MICROMAMBA_CHANNEL, f"python={language_version}"],
        )

    async def environment_exists(self, name: str) -> bool:
        if not self.config.binary_path.exists():
            return False

        try:
            returncode, stdout, _ = await run_micromamba(self.config, ["env", "list", "--json"])
        except OSError as e:
            logger.error({"event": "env_list_failed", "error": str(e)})
            return False
        if returncode != 0:
            return False

        try:
            envs = json.loads(stdout.decode(errors="replace") or "{}").get("envs", [])
        except json.JSONDecodeError:
            logger.warning({"event": "env_list_unparseable"})
            return False

        return any(Path(p).name == name and Path(p).parent.name == "envs" for p in envs)

    async def install_packages(
        self, name: str, packages: Sequence[str]
    ) -> List[PackageInstallResult]:
        results = []
        for package in packages:
            ok = await mamba_succeeds(
                self.config,
                ["run", "-n", name, "python", "-m", "pip", "install", package],
            )
            logger.info({"event": "package_install", "env": name, "package": package, "success": ok})
            results.append(PackageInstallResult(package_name=package, success=ok))
        return results

    async def destroy_environment(self, name: str) -> bool:
        logger.info({"event": "env_remove", "name": name})
        return await mamba_succeeds(self.config, ["env", "remove", "-y", "-n", name])

    async def remove_runtime_binary(self) -> bool:
        return remove_micromamba(self.config)
