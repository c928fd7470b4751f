"""Run Python scripts in on-demand micromamba environments."""

from mcp_script_runner.constants import FALLBACK_MESSAGE
from mcp_script_runner.errors import (
    ScriptRunnerError,
    InvalidInputError,
    InvalidRequestError,
    ProvisioningError,
    PackageInstallError,
    ExecutionError,
    CleanupError,
    OrchestrationError,
)
from mcp_script_runner.orchestrator import (
    LifecycleOrchestrator,
    PersistentRunOrchestrator,
    run_script,
    run_script_persistent,
)
from mcp_script_runner.types import (
    InvocationRequest,
    PackageInstallResult,
    RunnerConfig,
    RunState,
    SanitizedInput,
    SanitizeStatus,
)
from mcp_script_runner.validation import sanitize_input, validate_input

__version__ = "0.1.0"

__all__ = [
    # Types
    "InvocationRequest",
    "PackageInstallResult",
    "RunnerConfig",
    "RunState",
    "SanitizedInput",
    "SanitizeStatus",

    # Operations
    "run_script",
    "run_script_persistent",
    "LifecycleOrchestrator",
    "PersistentRunOrchestrator",
    "validate_input",
    "sanitize_input",
    "FALLBACK_MESSAGE",

    # Error types
    "ScriptRunnerError",
    "InvalidInputError",
    "InvalidRequestError",
    "ProvisioningError",
    "PackageInstallError",
    "ExecutionError",
    "CleanupError",
    "OrchestrationError",
]
