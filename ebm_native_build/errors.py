"""
Build errors.

Nothing in the pipeline catches or retries these; they unwind to the
matrix driver, which turns them into the process exit code.
"""
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ebm_native_build.core.executor import StepResult


class BuildError(Exception):
    """Base class for all build-driver errors."""

    exit_code: int = 1


class UnsupportedPlatformError(BuildError):
    """The host probe returned an OS this driver does not build on."""

    def __init__(self, os_type: str, message: str):
        super().__init__(message)
        self.os_type = os_type
        self.exit_code = 1


class StepFailedError(BuildError):
    """A pipeline step finished with a non-zero exit code."""

    def __init__(self, result: "StepResult"):
        super().__init__(
            f"step '{result.name}' failed with exit code {result.exit_code}"
        )
        self.result = result
        self.exit_code = result.exit_code
