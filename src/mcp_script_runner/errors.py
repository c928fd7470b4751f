"""Error types for the script runner."""
import logging
from typing import Any, Dict, Optional, Sequence

from mcp.types import ErrorData, INTERNAL_ERROR, INVALID_PARAMS


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log an error with context."""
    logger = logger or logging.getLogger(__name__)

    error_info = {
        "error_type": error.__class__.__name__,
        "error_message": str(error)
    }
    if context:
        error_info["context"] = context
    if isinstance(error, ScriptRunnerError):
        error_info["code"] = error.code
        error_info["details"] = error.details
    if error.__cause__ is not None:
        error_info["cause"] = repr(error.__cause__)

    logger.error("Script runner error occurred", extra={"data": error_info})


class ScriptRunnerError(Exception):
    """Base error class for the script runner."""
    def __init__(
        self,
        message: str,
        code: int = INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_error_data(self) -> ErrorData:
        """Convert to ErrorData format."""
        return ErrorData(
            code=self.code,
            message=str(self),
            data=self.details
        )


class InvalidInputError(ScriptRunnerError):
    """Input message is empty or contains disallowed characters."""
    def __init__(self, message: str, invalid_chars: Sequence[str] = ()):
        super().__init__(
            message,
            code=INVALID_PARAMS,
            details={"invalid_chars": sorted(set(invalid_chars))}
        )


class InvalidRequestError(ScriptRunnerError):
    """Invocation request is malformed."""
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            code=INVALID_PARAMS,
            details={"field": field} if field else {}
        )


class ProvisioningError(ScriptRunnerError):
    """Runtime binary or environment could not be provisioned."""
    def __init__(self, message: str, environment_name: Optional[str] = None):
        super().__init__(
            message,
            details={"environment_name": environment_name} if environment_name else {}
        )


class PackageInstallError(ScriptRunnerError):
    """One or more packages failed to install."""
    def __init__(self, environment_name: str, failed_packages: Sequence[str]):
        self.failed_packages = list(failed_packages)
        super().__init__(
            f"Failed to install packages into {environment_name}: "
            f"{', '.join(self.failed_packages)}",
            details={
                "environment_name": environment_name,
                "failed_packages": self.failed_packages
            }
        )


class ExecutionError(ScriptRunnerError):
    """Script invocation failed."""
    def __init__(
        self,
        script_path: str,
        returncode: Optional[int] = None,
        stderr: str = ""
    ):
        message = f"Script {script_path} failed"
        if returncode is not None:
            message += f" with code {returncode}"
        if stderr:
            message += f": {stderr.strip()}"
        super().__init__(
            message,
            details={
                "script_path": script_path,
                "returncode": returncode,
                "stderr": stderr
            }
        )


class CleanupError(ScriptRunnerError):
    """Teardown step failed. Logged only, never raised by the orchestrator."""
    def __init__(self, step: str, environment_name: str):
        super().__init__(
            f"Cleanup step {step} failed for {environment_name}",
            details={"step": step, "environment_name": environment_name}
        )


class OrchestrationError(ScriptRunnerError):
    """Fatal run failure, wrapping the original cause."""
    def __init__(self, operation: str, cause: BaseException, state: Optional[str] = None):
        details: Dict[str, Any] = {
            "operation": operation,
            "cause_type": cause.__class__.__name__
        }
        if state:
            details["state"] = state
        if isinstance(cause, ScriptRunnerError):
            details["cause_details"] = cause.details
        super().__init__(f"Error in {operation}: {cause}", details=details)
        self.operation = operation
