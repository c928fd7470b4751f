import os
import stat
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from mcp_script_runner.types import InvocationRequest, PackageInstallResult, RunnerConfig


class FakeProvider:
    """In-memory EnvironmentProvider recording every call"""

    def __init__(
        self,
        binary_ok: bool = True,
        create_ok: bool = True,
        exists: bool = False,
        failing_packages: Sequence[str] = (),
        destroy_ok: bool = True,
        remove_ok: bool = True,
    ):
        self.binary_ok = binary_ok
        self.create_ok = create_ok
        self.exists = exists
        self.failing_packages = set(failing_packages)
        self.destroy_ok = destroy_ok
        self.remove_ok = remove_ok
        self.calls: List[tuple] = []

    async def ensure_runtime_binary(self) -> bool:
        self.calls.append(("ensure_runtime_binary",))
        return self.binary_ok

    async def create_environment(self, name: str, language_version: str) -> bool:
        self.calls.append(("create_environment", name, language_version))
        return self.create_ok

    async def environment_exists(self, name: str) -> bool:
        self.calls.append(("environment_exists", name))
        return self.exists

    async def install_packages(self, name: str, packages: Sequence[str]) -> List[PackageInstallResult]:
        self.calls.append(("install_packages", name, list(packages)))
        return [
            PackageInstallResult(package_name=p, success=p not in self.failing_packages)
            for p in packages
        ]

    async def destroy_environment(self, name: str) -> bool:
        self.calls.append(("destroy_environment", name))
        return self.destroy_ok

    async def remove_runtime_binary(self) -> bool:
        self.calls.append(("remove_runtime_binary",))
        return self.remove_ok

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)

    @property
    def methods(self) -> List[str]:
        return [call[0] for call in self.calls]


class FakeRunner:
    """ScriptRunner returning a canned output"""

    def __init__(self, output: Optional[str] = "result text", error: Exception = None):
        self.output = output
        self.error = error
        self.calls: List[tuple] = []

    async def run(self, script_path: str, environment_name: str, arguments: Sequence[str]) -> Optional[str]:
        self.calls.append((script_path, environment_name, list(arguments)))
        if self.error:
            raise self.error
        return self.output


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def make_runner():
    return FakeRunner


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def runner_config(tmp_path: Path) -> RunnerConfig:
    """Config rooted in a throwaway prefix"""
    return RunnerConfig(root_prefix=tmp_path / "micromamba", env_vars={"OPENAI_API_KEY": "sk-test"})


@pytest.fixture
def invocation(tmp_path: Path) -> InvocationRequest:
    """Standard request against a temporary root prefix"""
    return InvocationRequest(
        input_message="Summarize the report",
        script_path="scripts/agent.py",
        root_prefix=tmp_path / "micromamba",
    )


# Stand-in for micromamba: logs its argv and answers the sub-commands we use
FAKE_MICROMAMBA = """#!/bin/sh
echo "$@" >> "$MAMBA_ROOT_PREFIX/calls.log"
case "$1" in
  create)
    mkdir -p "$MAMBA_ROOT_PREFIX/envs/$4"
    ;;
  env)
    if [ "$2" = "list" ]; then
      printf '{"envs": ["%s"' "$MAMBA_ROOT_PREFIX"
      for d in "$MAMBA_ROOT_PREFIX"/envs/*; do
        [ -d "$d" ] && printf ', "%s"' "$d"
      done
      printf ']}\\n'
    elif [ "$2" = "remove" ]; then
      [ -d "$MAMBA_ROOT_PREFIX/envs/$5" ] || exit 1
      rm -rf "$MAMBA_ROOT_PREFIX/envs/$5"
    fi
    ;;
  run)
    if [ "$5" = "-m" ]; then
      [ "$8" = "broken-pkg" ] && { echo "No matching distribution" >&2; exit 1; }
      exit 0
    fi
    case "$5" in
      *silent.py) exit 0 ;;
      *crash.py) echo "Traceback: boom" >&2; exit 3 ;;
    esac
    shift 5
    echo "key=$OPENAI_API_KEY args=$*"
    ;;
esac
"""


@pytest.fixture
def fake_micromamba(runner_config: RunnerConfig) -> Path:
    """Install the stand-in binary where the config expects micromamba"""
    if os.name == "nt":
        pytest.skip("shell stand-in requires a POSIX shell")

    binary = runner_config.binary_path
    binary.parent.mkdir(parents=True, exist_ok=True)
    binary.write_text(FAKE_MICROMAMBA)
    binary.chmod(binary.stat().st_mode | stat.S_IXUSR)
    return binary


@pytest.fixture
def calls_log(runner_config: RunnerConfig):
    def read() -> list[str]:
        path = runner_config.root_prefix / "calls.log"
        return path.read_text().splitlines() if path.exists() else []
    return read
