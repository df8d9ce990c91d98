"""
Targets — target descriptors and their on-disk layout.

A target is one concrete (platform, arch, build type) combination with
its directory layout under tmp/.  Expansion into a matrix lives in
core/matrix.py.
"""
from dataclasses import dataclass
from enum import Enum, unique
from pathlib import Path
from typing import Optional, Tuple

from ebm_native_build.config import BuildLayout


@unique
class Platform(str, Enum):
    MACOS = "mac"
    LINUX = "linux"

    @property
    def display_name(self) -> str:
        return "macOS" if self is Platform.MACOS else "Linux"

    @property
    def toolchain_dir(self) -> str:
        """Directory under tmp/ that groups this platform's build trees."""
        return "clang" if self is Platform.MACOS else "gcc"

    @property
    def library_suffix(self) -> str:
        return ".dylib" if self is Platform.MACOS else ".so"

    @classmethod
    def from_probe(cls, os_type: str) -> Optional["Platform"]:
        """Map the output of ``uname`` to a Platform, None if unsupported."""
        return _UNAME_TO_PLATFORM.get(os_type.strip())


_UNAME_TO_PLATFORM = {
    "Darwin": Platform.MACOS,
    "Linux": Platform.LINUX,
}


@unique
class Arch(str, Enum):
    X64 = "x64"
    X86 = "x86"


@unique
class BuildType(str, Enum):
    RELEASE = "release"
    DEBUG = "debug"


# Every supported host builds x64 natively; anything else is a cross target.
NATIVE_ARCH = Arch.X64

LIBRARY_NAME = "ebm_native"


@dataclass(frozen=True)
class TargetDescriptor:
    """Everything the runner needs to build and stage one target."""

    platform: Platform
    arch: Arch
    build_type: BuildType
    output_file_name: str
    intermediate_dir: Path
    output_dir: Path
    log_file: Path
    extra_flags: Tuple[str, ...] = ()

    @property
    def label(self) -> str:
        """Human-readable name, e.g. ``Linux release|x64``."""
        return f"{self.platform.display_name} {self.build_type.value}|{self.arch.value}"

    @property
    def key(self) -> str:
        """Stable identifier, e.g. ``linux-release-x64``."""
        return f"{self.platform.value}-{self.build_type.value}-{self.arch.value}"

    @property
    def artifact_path(self) -> Path:
        return self.output_dir / self.output_file_name

    @property
    def is_cross(self) -> bool:
        return self.arch is not NATIVE_ARCH


def output_file_name(platform: Platform, arch: Arch, build_type: BuildType) -> str:
    """``lib_ebm_native_<os>_<arch>[_debug].<ext>``"""
    debug_suffix = "_debug" if build_type is BuildType.DEBUG else ""
    return (
        f"lib_{LIBRARY_NAME}_{platform.value}_{arch.value}{debug_suffix}"
        f"{platform.library_suffix}"
    )


def make_target(
    layout: BuildLayout,
    platform: Platform,
    arch: Arch,
    build_type: BuildType,
    extra_flags: Tuple[str, ...] = (),
) -> TargetDescriptor:
    """Build one descriptor with the standard tmp/ directory layout."""
    tree = layout.tmp_path / platform.toolchain_dir
    suffix = Path(build_type.value) / platform.value / arch.value / LIBRARY_NAME
    intermediate_dir = tree / "intermediate" / suffix
    log_name = (
        f"{LIBRARY_NAME}_{build_type.value}_{platform.value}_{arch.value}_build_log.txt"
    )
    return TargetDescriptor(
        platform=platform,
        arch=arch,
        build_type=build_type,
        output_file_name=output_file_name(platform, arch, build_type),
        intermediate_dir=intermediate_dir,
        output_dir=tree / "bin" / suffix,
        log_file=intermediate_dir / log_name,
        extra_flags=tuple(extra_flags),
    )

