"""
Step executor — run one pipeline step and report its result.

A step is an external command (probe, compiler, installer) or one of the
filesystem operations the pipeline needs (create directory, write log,
copy artifact).  Every step produces a StepResult; the executor never
retries and never interprets diagnostics.  Callers decide what a
non-zero exit code means, normally by calling ``check``.

Exit-code conventions for failures that never reach a child process:
    127  executable not found on PATH
    126  executable found but not runnable
    124  step exceeded the configured timeout
    128+N  child killed by signal N
    1    filesystem operation failed
"""
import logging
import shlex
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from ebm_native_build.errors import StepFailedError

logger = logging.getLogger(__name__)

EXIT_OS_ERROR = 1
EXIT_TIMEOUT = 124
EXIT_NOT_EXECUTABLE = 126
EXIT_COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class StepResult:
    """Outcome of a single step."""

    name: str
    command: str
    exit_code: int
    output: str = ""  # combined stdout + stderr
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def check(result: StepResult) -> StepResult:
    """Raise StepFailedError unless *result* succeeded."""
    if not result.success:
        raise StepFailedError(result)
    return result


def _as_text(data) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def _elapsed_ms(t0: float) -> int:
    return int((time.monotonic() - t0) * 1000)


class StepExecutor:
    """Runs steps sequentially, blocking until each one finishes."""

    def __init__(self, timeout: Optional[int] = None, cwd: Optional[Path] = None):
        self.timeout = timeout
        self.cwd = cwd

    # -----------------------------------------------------------------
    # External commands
    # -----------------------------------------------------------------

    def run(self, name: str, argv: List[str], input: Optional[str] = None) -> StepResult:
        """Run *argv* and capture stdout and stderr as one text blob."""
        command = shlex.join(argv)
        logger.debug(f"[{name}] {command}")

        t0 = time.monotonic()
        exit_code, output = self._spawn(argv, input)
        return StepResult(
            name=name,
            command=command,
            exit_code=exit_code,
            output=output,
            duration_ms=_elapsed_ms(t0),
        )

    def _spawn(self, argv: List[str], input: Optional[str]) -> Tuple[int, str]:
        """Start the child process; returns (exit_code, output)."""
        try:
            proc = subprocess.run(
                argv,
                cwd=str(self.cwd) if self.cwd else None,
                input=input,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError:
            return EXIT_COMMAND_NOT_FOUND, f"{argv[0]}: command not found"
        except PermissionError as e:
            return EXIT_NOT_EXECUTABLE, f"{argv[0]}: {e.strerror or e}"
        except subprocess.TimeoutExpired as e:
            partial = _as_text(e.output)
            return EXIT_TIMEOUT, f"{partial}TIMEOUT after {self.timeout}s"

        exit_code = proc.returncode
        if exit_code < 0:
            exit_code = 128 - exit_code
        return exit_code, proc.stdout or ""

    # -----------------------------------------------------------------
    # Filesystem steps
    # -----------------------------------------------------------------

    def make_dirs(self, name: str, path: Path) -> StepResult:
        """Create *path* (and parents) if absent. Existing dirs are fine."""
        t0 = time.monotonic()
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return StepResult(
                name=name,
                command=f"mkdir -p {path}",
                exit_code=EXIT_OS_ERROR,
                output=f"mkdir: {path}: {e.strerror or e}",
                duration_ms=_elapsed_ms(t0),
            )
        return StepResult(
            name=name,
            command=f"mkdir -p {path}",
            exit_code=0,
            duration_ms=_elapsed_ms(t0),
        )

    def write_text(self, name: str, path: Path, text: str) -> StepResult:
        """Overwrite *path* with *text*."""
        t0 = time.monotonic()
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            return StepResult(
                name=name,
                command=f"write {path}",
                exit_code=EXIT_OS_ERROR,
                output=f"write: {path}: {e.strerror or e}",
                duration_ms=_elapsed_ms(t0),
            )
        return StepResult(
            name=name,
            command=f"write {path}",
            exit_code=0,
            duration_ms=_elapsed_ms(t0),
        )

    def copy_file(self, name: str, src: Path, dest_dir: Path) -> StepResult:
        """Copy *src* into *dest_dir*, keeping its file name and bytes."""
        command = f"cp {src} {dest_dir}/"
        t0 = time.monotonic()
        try:
            shutil.copy2(src, dest_dir / src.name)
        except OSError as e:
            return StepResult(
                name=name,
                command=command,
                exit_code=EXIT_OS_ERROR,
                output=f"cp: {e.filename or src}: {e.strerror or e}",
                duration_ms=_elapsed_ms(t0),
            )
        return StepResult(
            name=name,
            command=command,
            exit_code=0,
            duration_ms=_elapsed_ms(t0),
        )
