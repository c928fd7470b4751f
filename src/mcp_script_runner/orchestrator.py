"""Script run lifecycle: validate, provision, install, execute, tear down."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from mcp_script_runner.config import config_for_request
from mcp_script_runner.constants import FALLBACK_MESSAGE
from mcp_script_runner.environments.provider import EnvironmentProvider, MicromambaProvider
from mcp_script_runner.errors import (
    CleanupError,
    OrchestrationError,
    PackageInstallError,
    ProvisioningError,
    log_error,
)
from mcp_script_runner.logging import get_logger, log_with_data
from mcp_script_runner.runners.runner import (
    MicromambaScriptRunner,
    ScriptRunner,
    build_script_arguments,
)
from mcp_script_runner.types import InvocationRequest, RunState
from mcp_script_runner.validation import sanitize_input

logger = get_logger(__name__)


async def release_environment(provider: EnvironmentProvider, name: str) -> None:
    """Destroy the environment and remove the runtime binary, best effort.

    Failures are logged and swallowed so they never replace the error (or
    result) of the run being cleaned up.
    """
    steps = (
        ("destroy_environment", lambda: provider.destroy_environment(name)),
        ("remove_runtime_binary", provider.remove_runtime_binary),
    )
    for step, call in steps:
        try:
            ok = await call()
        except Exception as e:
            log_error(e, {"step": step, "environment_name": name}, logger)
            continue
        if not ok:
            log_error(CleanupError(step, name), logger=logger)


@asynccontextmanager
async def environment_scope(provider: EnvironmentProvider, name: str) -> AsyncIterator[None]:
    """Release the named environment on every exit path, including cancellation."""
    try:
        yield
    finally:
        log_with_data(logger, logging.DEBUG, "Run state", {"state": RunState.CLEANING_UP.name, "env": name})
        await release_environment(provider, name)


class LifecycleOrchestrator:
    """Runs one script in a freshly provisioned environment, then tears it down."""

    operation = "run_script"

    def __init__(self, provider: EnvironmentProvider, runner: ScriptRunner):
        self.provider = provider
        self.runner = runner
        self.state = RunState.IDLE

    def _enter(self, state: RunState) -> None:
        self.state = state
        log_with_data(logger, logging.DEBUG, "Run state", {"operation": self.operation, "state": state.name})

    async def run(self, request: InvocationRequest) -> str:
        self.state = RunState.IDLE
        try:
            async with environment_scope(self.provider, request.environment_name):
                message = self._validate(request)
                await self._provision(request)
                if request.extra_packages:
                    await self._install(request)
                result = await self._execute(request, message)
        except Exception as e:
            raise self._fail(e, request) from e

        self._enter(RunState.DONE)
        return result

    def _fail(self, cause: Exception, request: InvocationRequest) -> OrchestrationError:
        failed_in = self.state
        self._enter(RunState.ERROR)
        error = OrchestrationError(self.operation, cause, state=failed_in.name)
        log_error(error, {"environment_name": request.environment_name}, logger)
        return error

    def _validate(self, request: InvocationRequest) -> str:
        self._enter(RunState.VALIDATING)
        sanitized = sanitize_input(request.input_message)
        if sanitized.was_sanitized:
            logger.warning({"event": "input_replaced", "operation": self.operation})
        return sanitized.message

    async def _provision(self, request: InvocationRequest) -> None:
        self._enter(RunState.PROVISIONING)
        if not await self.provider.ensure_runtime_binary():
            raise ProvisioningError("Runtime binary is not available")
        if await self.provider.environment_exists(request.environment_name):
            logger.info({"event": "env_reused", "name": request.environment_name})
            return
        if not await self.provider.create_environment(
            request.environment_name, request.language_version
        ):
            raise ProvisioningError(
                f"Failed to create environment {request.environment_name}",
                environment_name=request.environment_name,
            )

    async def _install(self, request: InvocationRequest) -> None:
        self._enter(RunState.INSTALLING_PACKAGES)
        results = await self.provider.install_packages(
            request.environment_name, request.extra_packages
        )
        failed = [r.package_name for r in results if not r.success]
        if failed:
            raise PackageInstallError(request.environment_name, failed)

    async def _execute(self, request: InvocationRequest, message: str) -> str:
        self._enter(RunState.EXECUTING)
        arguments = build_script_arguments(
            message, request.temperature, request.model_name, request.max_retries
        )
        output = await self.runner.run(request.script_path, request.environment_name, arguments)
        if not output:
            logger.info({"event": "script_no_output", "script": request.script_path})
            return FALLBACK_MESSAGE
        return output


class PersistentRunOrchestrator(LifecycleOrchestrator):
    """Runs against an environment provisioned out of band; never creates or removes it.

    When the environment does not exist the run does nothing and returns None.
    """

    operation = "run_script_persistent"

    async def run(self, request: InvocationRequest) -> Optional[str]:
        self.state = RunState.IDLE
        try:
            if not await self.provider.environment_exists(request.environment_name):
                logger.info({"event": "env_not_ready", "name": request.environment_name})
                return None
            message = self._validate(request)
            result = await self._execute(request, message)
        except Exception as e:
            raise self._fail(e, request) from e

        self._enter(RunState.DONE)
        return result


async def run_script(
    request: InvocationRequest,
    provider: Optional[EnvironmentProvider] = None,
    runner: Optional[ScriptRunner] = None,
) -> str:
    """Provision, run the script, and always tear the environment down."""
    config = config_for_request(request)
    orchestrator = LifecycleOrchestrator(
        provider or MicromambaProvider(config),
        runner or MicromambaScriptRunner(config),
    )
    return await orchestrator.run(request)


async def run_script_persistent(
    request: InvocationRequest,
    provider: Optional[EnvironmentProvider] = None,
    runner: Optional[ScriptRunner] = None,
) -> Optional[str]:
    """Run the script only if its environment already exists."""
    config = config_for_request(request)
    orchestrator = PersistentRunOrchestrator(
        provider or MicromambaProvider(config),
        runner or MicromambaScriptRunner(config),
    )
    return await orchestrator.run(request)
