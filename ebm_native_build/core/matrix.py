"""
Matrix — expand the declarative build matrix for one invocation.

The matrix is fixed by the host platform and a single runtime flag
(include 32-bit Linux targets); it is built once and never mutated.

Order is part of the contract:
    release|x64, debug|x64, [release|x86, debug|x86]   (x86: Linux only)
"""
from typing import Tuple

from ebm_native_build.config import BuildLayout
from ebm_native_build.core.targets import (
    Arch,
    BuildType,
    Platform,
    TargetDescriptor,
    make_target,
)
from ebm_native_build.policy.profile import PlatformProfile

BUILD_TYPE_ORDER = (BuildType.RELEASE, BuildType.DEBUG)

BuildMatrix = Tuple[TargetDescriptor, ...]


def matrix_arches(platform: Platform, include_32bit: bool) -> Tuple[Arch, ...]:
    """64-bit always; 32-bit only on Linux and only when requested."""
    if include_32bit and platform is Platform.LINUX:
        return (Arch.X64, Arch.X86)
    return (Arch.X64,)


def expand_matrix(
    layout: BuildLayout,
    profile: PlatformProfile,
    include_32bit: bool = False,
) -> BuildMatrix:
    """Return the ordered, immutable build matrix for *profile*'s platform."""
    platform = profile.platform
    return tuple(
        make_target(
            layout,
            platform,
            arch,
            build_type,
            extra_flags=profile.target_flags(arch, build_type),
        )
        for arch in matrix_arches(platform, include_32bit)
        for build_type in BUILD_TYPE_ORDER
    )
