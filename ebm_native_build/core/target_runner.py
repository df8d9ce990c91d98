"""
Target runner — build and stage one target.

Sequence, aborting at the first failing step:

    1. toolchain bootstrap      (cross targets only)
    2. intermediate + output directories
    3. compiler invocation      (output captured)
    4. echo output, write log   (always, before the exit code is checked)
    5. copy artifact to each staging destination

A failure leaves everything produced so far in place: a failed compile
still has its log, a failed copy leaves the artifact in the output
directory (and possibly in the first staging destination).
"""
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ebm_native_build.config import BuildLayout
from ebm_native_build.core.artifact import ArtifactInfo, inspect_artifact
from ebm_native_build.core.bootstrap import INSTALL_STEP, Bootstrapper
from ebm_native_build.core.executor import StepExecutor, StepResult, check
from ebm_native_build.core.flags import compile_command, compiler_for
from ebm_native_build.core.targets import LIBRARY_NAME, TargetDescriptor
from ebm_native_build.errors import StepFailedError
from ebm_native_build.policy.profile import PlatformProfile

logger = logging.getLogger(__name__)

COMPILE_STEP = "compile"


def _echoed(result: StepResult) -> bool:
    """Compiler and installer output already went to the console."""
    return result.name == COMPILE_STEP or result.name.startswith(INSTALL_STEP)


@dataclass
class TargetOutcome:
    """What happened while building one target."""

    target: TargetDescriptor
    steps: List[StepResult] = field(default_factory=list)
    exit_code: int = 0
    failed_step: Optional[str] = None
    artifact: Optional[ArtifactInfo] = None
    staged: List[Path] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class TargetRunner:
    """Runs the per-target pipeline for every descriptor it is given."""

    def __init__(
        self,
        layout: BuildLayout,
        profile: PlatformProfile,
        executor: StepExecutor,
        bootstrapper: Optional[Bootstrapper] = None,
        console=None,
    ):
        self.layout = layout
        self.profile = profile
        self.executor = executor
        self.console = console
        self.bootstrapper = bootstrapper or Bootstrapper(
            layout, profile, executor, console=console
        )

    # -----------------------------------------------------------------
    # Public entry point
    # -----------------------------------------------------------------

    def build(self, target: TargetDescriptor) -> TargetOutcome:
        """Build *target*; the outcome's exit_code is 0 only if every step passed."""
        outcome = TargetOutcome(target=target)
        compiler = compiler_for(self.layout, self.profile)
        self._say(f"Compiling {LIBRARY_NAME} with {compiler} for {target.label}")

        try:
            self._bootstrap(target, outcome)
            self._make_directories(target, outcome)
            self._compile(target, outcome)
            self._stage(target, outcome)
        except StepFailedError as e:
            outcome.exit_code = e.exit_code
            outcome.failed_step = e.result.name
            logger.error(
                f"{target.label}: step '{e.result.name}' failed "
                f"with exit code {e.exit_code}"
            )
            if not _echoed(e.result) and e.result.output:
                logger.error(e.result.output.rstrip("\n"))
            return outcome

        logger.info(f"{target.label}: built {target.output_file_name}")
        return outcome

    # -----------------------------------------------------------------
    # Pipeline steps
    # -----------------------------------------------------------------

    def _bootstrap(self, target: TargetDescriptor, outcome: TargetOutcome):
        if not target.is_cross:
            return
        seen = len(self.bootstrapper.history)
        try:
            self.bootstrapper.ensure_toolchain(target)
        finally:
            outcome.steps.extend(self.bootstrapper.history[seen:])

    def _make_directories(self, target: TargetDescriptor, outcome: TargetOutcome):
        self._record(outcome, self.executor.make_dirs(
            "create intermediate dir", target.intermediate_dir))
        self._record(outcome, self.executor.make_dirs(
            "create output dir", target.output_dir))

    def _compile(self, target: TargetDescriptor, outcome: TargetOutcome):
        cmd = compile_command(self.layout, self.profile, target)
        result = self.executor.run(COMPILE_STEP, cmd)
        outcome.steps.append(result)

        # Diagnostics are persisted before the exit code is looked at.
        text = result.output.rstrip("\n")
        print(text, file=self.console or sys.stdout)
        log_result = self.executor.write_text("write log", target.log_file, text + "\n")
        outcome.steps.append(log_result)

        check(result)
        check(log_result)

        # A missing artifact surfaces as a failed copy in the staging step.
        if target.artifact_path.exists():
            outcome.artifact = inspect_artifact(target.artifact_path, target.arch)

    def _stage(self, target: TargetDescriptor, outcome: TargetOutcome):
        for dest in self.layout.staging_destinations:
            self._record(outcome, self.executor.copy_file(
                f"copy to {dest.name}", target.artifact_path, dest))
            outcome.staged.append(dest / target.output_file_name)

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------

    def _record(self, outcome: TargetOutcome, result: StepResult) -> StepResult:
        outcome.steps.append(result)
        return check(result)

    def _say(self, line: str):
        print(line, file=self.console or sys.stdout)
