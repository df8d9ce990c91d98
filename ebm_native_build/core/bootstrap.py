"""
Bootstrap — make sure a cross-architecture toolchain is usable.

Cross targets (x86 on an x64 host) need the multilib runtime.  Presence
is decided by a capability probe: compile and link a trivial translation
unit with the target's arch flag.  If the probe fails, the configured
installer runs once and the probe is repeated to verify it.

Results are memoised per (platform, arch) for the lifetime of the
Bootstrapper, so a matrix with several x86 targets probes and installs
at most once per invocation.  A later invocation finds the probe passing
and installs nothing.
"""
import logging
import os
import sys
from typing import Dict, List, Optional, Tuple

from ebm_native_build.config import BuildLayout
from ebm_native_build.core.executor import StepExecutor, StepResult, check
from ebm_native_build.core.flags import compiler_for
from ebm_native_build.core.targets import Arch, Platform, TargetDescriptor
from ebm_native_build.policy.profile import ARCH_FLAGS, PlatformProfile

logger = logging.getLogger(__name__)

PROBE_SOURCE = "int main() { return 0; }\n"
INSTALL_STEP = "install toolchain"


class Bootstrapper:
    """One-time installer for cross-compilation prerequisites."""

    def __init__(
        self,
        layout: BuildLayout,
        profile: PlatformProfile,
        executor: StepExecutor,
        console=None,
    ):
        self.layout = layout
        self.profile = profile
        self.executor = executor
        self.console = console
        self._satisfied: Dict[Tuple[Platform, Arch], StepResult] = {}
        self.history: List[StepResult] = []  # every step run, in order

    def probe_command(self, arch: Arch) -> List[str]:
        return [
            compiler_for(self.layout, self.profile),
            *ARCH_FLAGS[arch],
            "-x", "c++", "-",
            "-o", os.devnull,
        ]

    def probe(self, arch: Arch) -> StepResult:
        """Check whether the toolchain can build for *arch* right now."""
        result = self.executor.run(
            f"probe toolchain {arch.value}",
            self.probe_command(arch),
            input=PROBE_SOURCE,
        )
        self.history.append(result)
        return result

    def ensure_toolchain(self, target: TargetDescriptor) -> Optional[StepResult]:
        """
        Ensure *target*'s toolchain is present, installing it if needed.

        Returns None for native targets, otherwise the step that proved
        the toolchain usable.  Raises StepFailedError if installation or
        the verification probe fails.
        """
        if not target.is_cross:
            return None

        key = (target.platform, target.arch)
        if key in self._satisfied:
            return self._satisfied[key]

        result = self.probe(target.arch)
        if result.success:
            logger.info(f"{target.arch.value} toolchain already present")
            self._satisfied[key] = result
            return result

        logger.info(
            f"{target.arch.value} toolchain probe failed (exit {result.exit_code}), "
            f"installing"
        )
        self._say(f"Doing first time installation of {target.arch.value}")
        install = self.executor.run(
            f"{INSTALL_STEP} {target.arch.value}",
            list(self.layout.multilib_install),
        )
        self.history.append(install)
        self._echo(install.output)
        check(install)

        verified = check(self.probe(target.arch))
        self._satisfied[key] = verified
        return verified

    def _say(self, line: str):
        print(line, file=self.console or sys.stdout)

    def _echo(self, text: str):
        if text:
            print(text.rstrip("\n"), file=self.console or sys.stdout)
