"""
Matrix runner — top-level orchestration: host probe → matrix → targets.

This module ties platform detection, matrix expansion, the per-target
pipeline and the receipt together into a single ``run_matrix`` function
that the CLI calls.  The returned integer is the process exit code:

    0        every target built and staged
    1        host platform not recognised (nothing is created)
    other    exit code of the first failing step, unchanged

Targets run strictly in matrix order and the run stops at the first
failing target; later targets are never attempted.
"""
import logging
import sys
from typing import Optional, Tuple

from ebm_native_build.config import BuildLayout, Settings
from ebm_native_build.core.executor import StepExecutor, check
from ebm_native_build.core.flags import compiler_for
from ebm_native_build.core.matrix import BuildMatrix, expand_matrix
from ebm_native_build.core.target_runner import TargetOutcome, TargetRunner
from ebm_native_build.core.targets import Platform, TargetDescriptor
from ebm_native_build.errors import BuildError, UnsupportedPlatformError
from ebm_native_build.io.schema import (
    ArtifactRecord,
    ElfInfo,
    MatrixReceipt,
    StepRecord,
    TargetRecord,
    TargetStatus,
)
from ebm_native_build.io.writer import write_receipt
from ebm_native_build.policy.profile import PlatformProfile

logger = logging.getLogger(__name__)


# ── Host detection ───────────────────────────────────────────────────────────

def unsupported_platform_message(layout: BuildLayout, os_type: str) -> str:
    return (
        f"OS {os_type} not recognized.  We support {layout.clang_pp_bin} "
        f"on macOS and {layout.gpp_bin} on Linux"
    )


def detect_host_platform(
    layout: BuildLayout,
    executor: StepExecutor,
) -> Tuple[Optional[Platform], str]:
    """
    Run the platform probe once.

    Returns (platform, raw_os_type); platform is None when the OS is not
    one we build on.  A probe that cannot run raises StepFailedError.
    """
    result = check(executor.run("probe host platform", list(layout.platform_probe)))
    os_type = result.output.strip()
    return Platform.from_probe(os_type), os_type


# ── Receipt helpers ──────────────────────────────────────────────────────────

def target_record(target: TargetDescriptor) -> TargetRecord:
    return TargetRecord(
        key=target.key,
        label=target.label,
        platform=target.platform.value,
        arch=target.arch.value,
        build_type=target.build_type.value,
        output_file_name=target.output_file_name,
        log_file=str(target.log_file),
    )


def apply_outcome(record: TargetRecord, outcome: TargetOutcome):
    record.status = TargetStatus.SUCCESS if outcome.success else TargetStatus.FAILED
    record.exit_code = outcome.exit_code
    record.failed_step = outcome.failed_step
    record.steps = [
        StepRecord(
            name=s.name,
            command=s.command,
            exit_code=s.exit_code,
            duration_ms=s.duration_ms,
        )
        for s in outcome.steps
    ]
    art = outcome.artifact
    if art is not None:
        record.artifact = ArtifactRecord(
            file_name=art.path.name,
            path=str(art.path),
            sha256=art.sha256,
            size_bytes=art.size_bytes,
            elf=ElfInfo(
                elf_class=art.elf.elf_class,
                elf_type=art.elf.elf_type,
                machine=art.elf.machine,
            ) if art.elf else None,
            staged_to=[str(p) for p in outcome.staged],
        )


# ── Driver ───────────────────────────────────────────────────────────────────

class MatrixDriver:
    """Runs the whole build matrix for one invocation."""

    def __init__(
        self,
        layout: BuildLayout,
        executor: Optional[StepExecutor] = None,
        console=None,
        write_receipt: bool = True,
    ):
        self.layout = layout
        self.executor = executor or StepExecutor(timeout=layout.step_timeout)
        self.console = console
        self.write_receipt = write_receipt
        self.receipt: Optional[MatrixReceipt] = None

    def run(self, include_32bit: bool = False, host_platform: Optional[str] = None) -> int:
        """
        Build every target for the host.

        *host_platform* is a ``uname``-style OS name; when omitted the
        platform probe is run.
        """
        try:
            return self._run(include_32bit, host_platform)
        except BuildError as e:
            logger.error(str(e))
            return e.exit_code

    def _run(self, include_32bit: bool, host_platform: Optional[str]) -> int:
        # ── Step 1: host platform ───────────────────────────────────────
        if host_platform is None:
            platform, os_type = detect_host_platform(self.layout, self.executor)
        else:
            os_type = host_platform
            platform = Platform.from_probe(os_type)

        if platform is None:
            message = unsupported_platform_message(self.layout, os_type)
            self._say(message)
            raise UnsupportedPlatformError(os_type, message)

        profile = PlatformProfile.for_platform(platform)
        if include_32bit and platform is not Platform.LINUX:
            logger.warning("-32bit only applies to Linux builds, ignoring")

        # ── Step 2: matrix ──────────────────────────────────────────────
        matrix = expand_matrix(self.layout, profile, include_32bit)
        logger.info(
            f"Host {platform.display_name}: {len(matrix)} target(s): "
            + ", ".join(t.label for t in matrix)
        )

        self.receipt = MatrixReceipt(
            host_platform=platform.value,
            profile_id=profile.profile_id,
            compiler=compiler_for(self.layout, profile),
            include_32bit=include_32bit,
            targets=[target_record(t) for t in matrix],
        )

        exit_code = 1
        try:
            exit_code = self._build_matrix(profile, matrix)
        finally:
            self._finish(exit_code)
        return exit_code

    def _build_matrix(self, profile: PlatformProfile, matrix: BuildMatrix) -> int:
        # ── Step 3: staging destinations ────────────────────────────────
        self._say("Creating initial directories")
        # staging first, then the embedded-library dir
        for dest in reversed(self.layout.staging_destinations):
            result = self.executor.make_dirs(f"create {dest.name}", dest)
            if not result.success:
                logger.error(f"Cannot create staging destination {dest}: {result.output}")
                return result.exit_code

        # ── Step 4: targets, in order, stop at first failure ────────────
        runner = TargetRunner(self.layout, profile, self.executor, console=self.console)
        for target, record in zip(matrix, self.receipt.targets):
            outcome = runner.build(target)
            apply_outcome(record, outcome)
            if not outcome.success:
                return outcome.exit_code

        logger.info(f"All {len(matrix)} target(s) built")
        return 0

    def _finish(self, exit_code: int):
        self.receipt.mark_finished(exit_code)
        if not self.write_receipt:
            return
        # the receipt never changes the build's exit code
        try:
            path = write_receipt(self.receipt, self.layout.receipt_path)
        except OSError as e:
            logger.error(f"Cannot write receipt {self.layout.receipt_path}: {e}")
            return
        logger.info(f"Receipt saved: {path}")

    def _say(self, line: str):
        print(line, file=self.console or sys.stdout)


def run_matrix(
    settings: Optional[Settings] = None,
    include_32bit: bool = False,
    host_platform: Optional[str] = None,
    executor: Optional[StepExecutor] = None,
    console=None,
) -> int:
    """
    Build the full matrix described by *settings*.

    Returns the process exit code.
    """
    if settings is None:
        settings = Settings()
    driver = MatrixDriver(
        settings.layout(),
        executor=executor,
        console=console,
        write_receipt=settings.WRITE_RECEIPT,
    )
    return driver.run(include_32bit=include_32bit, host_platform=host_platform)
