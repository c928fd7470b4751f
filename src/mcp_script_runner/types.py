"""Core type definitions"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from mcp_script_runner.constants import (
    BINARY_NAME,
    DEFAULT_ENVIRONMENT_NAME,
    DEFAULT_LANGUAGE_VERSION,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MODEL_NAME,
    DEFAULT_TEMPERATURE,
)
from mcp_script_runner.errors import InvalidRequestError

SanitizeStatus = Enum('SanitizeStatus', ['OK', 'SANITIZED'])
RunState = Enum('RunState', [
    'IDLE',
    'VALIDATING',
    'PROVISIONING',
    'INSTALLING_PACKAGES',
    'EXECUTING',
    'CLEANING_UP',
    'DONE',
    'ERROR',
])


@dataclass(frozen=True)
class SanitizedInput:
    """Outcome of the input gate: the message to use and how it was obtained"""
    message: str
    status: SanitizeStatus

    @property
    def was_sanitized(self) -> bool:
        return self.status == SanitizeStatus.SANITIZED


@dataclass(frozen=True)
class PackageInstallResult:
    """Per-package install outcome"""
    package_name: str
    success: bool


@dataclass(frozen=True)
class RunnerConfig:
    """Configuration threaded into the environment provider and script runner"""
    root_prefix: Path
    env_vars: dict[str, str] = field(default_factory=dict)

    @property
    def bin_dir(self) -> Path:
        return self.root_prefix / "bin"

    @property
    def binary_path(self) -> Path:
        suffix = ".exe" if os.name == "nt" else ""
        return self.bin_dir / f"{BINARY_NAME}{suffix}"

    def command_env(self) -> dict[str, str]:
        """Environment for subprocesses; the current process env is never touched."""
        return {
            **os.environ,
            **self.env_vars,
            "MAMBA_ROOT_PREFIX": str(self.root_prefix),
        }


@dataclass(frozen=True)
class InvocationRequest:
    """A single script invocation.

    Built per call and never persisted. ``root_prefix`` of None means the
    platform default (see ``config.default_root_prefix``).
    """
    input_message: str
    script_path: str
    environment_name: str = DEFAULT_ENVIRONMENT_NAME
    language_version: str = DEFAULT_LANGUAGE_VERSION
    root_prefix: Optional[Path] = None
    extra_packages: List[str] = field(default_factory=list)
    temperature: float = DEFAULT_TEMPERATURE
    model_name: str = DEFAULT_MODEL_NAME
    max_retries: int = DEFAULT_MAX_RETRIES
    dotenv_path: Optional[Path] = None

    def __post_init__(self):
        if not self.script_path or not self.script_path.strip():
            raise InvalidRequestError("Script path must not be empty", field="script_path")
        if not self.environment_name:
            raise InvalidRequestError("Environment name must not be empty", field="environment_name")
        if self.max_retries < 0:
            raise InvalidRequestError(
                f"max_retries must be >= 0, got {self.max_retries}", field="max_retries"
            )
        object.__setattr__(self, 'extra_packages', list(self.extra_packages or []))
