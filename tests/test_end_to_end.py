import dataclasses

import pytest

from mcp_script_runner.environments.provider import MicromambaProvider
from mcp_script_runner.errors import OrchestrationError, PackageInstallError
from mcp_script_runner.orchestrator import run_script
from mcp_script_runner.runners.runner import MicromambaScriptRunner


@pytest.fixture
def collaborators(runner_config):
    return MicromambaProvider(runner_config), MicromambaScriptRunner(runner_config)


@pytest.mark.asyncio
async def test_full_run_against_micromamba(invocation, runner_config, collaborators, fake_micromamba, calls_log):
    """Test a complete run drives the micromamba CLI in order and leaves nothing behind"""
    provider, runner = collaborators
    request = dataclasses.replace(invocation, extra_packages=["requests"])

    result = await run_script(request, provider, runner)

    assert result == (
        "key=sk-test args=-i Summarize the report "
        "--temperature 0.0 --model-name gpt-4o-mini --max-retries 3"
    )
    assert calls_log() == [
        "env list --json",
        "create -y -n langchain -c conda-forge python=3.11",
        "run -n langchain python -m pip install requests",
        "run -n langchain python scripts/agent.py -i Summarize the report "
        "--temperature 0.0 --model-name gpt-4o-mini --max-retries 3",
        "env remove -y -n langchain",
    ]
    assert not fake_micromamba.exists()
    assert not (runner_config.root_prefix / "envs" / "langchain").exists()


@pytest.mark.asyncio
async def test_failed_install_tears_down(invocation, runner_config, collaborators, fake_micromamba, calls_log):
    """Test a failing package stops the run before the script and still removes everything"""
    provider, runner = collaborators
    request = dataclasses.replace(invocation, extra_packages=["broken-pkg"])

    with pytest.raises(OrchestrationError) as exc:
        await run_script(request, provider, runner)

    assert isinstance(exc.value.__cause__, PackageInstallError)
    assert not any("scripts/agent.py" in line for line in calls_log())
    assert calls_log()[-1] == "env remove -y -n langchain"
    assert not fake_micromamba.exists()
    assert not (runner_config.root_prefix / "envs" / "langchain").exists()
