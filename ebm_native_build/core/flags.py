"""
Flags — compose the single compiler/linker invocation for a target.

Composition is additive and order-sensitive; nothing here is
user-configurable beyond what the PlatformProfile declares.
"""
from pathlib import Path
from typing import List

from ebm_native_build.config import BuildLayout
from ebm_native_build.core.targets import TargetDescriptor
from ebm_native_build.policy.profile import (
    COMMON_FLAGS,
    INCLUDE_DIRS,
    SOURCE_FILES,
    PlatformProfile,
)


def _expand(token: str, source_path: Path) -> str:
    return token.replace("{source}", str(source_path))


def compiler_for(layout: BuildLayout, profile: PlatformProfile) -> str:
    """clang++ on macOS, g++ on Linux."""
    if profile.compiler == "clang":
        return layout.clang_pp_bin
    return layout.gpp_bin


def common_args(layout: BuildLayout) -> List[str]:
    """Sources, include directories and the flags shared by every platform."""
    src = layout.source_path
    args = [str(src / name) for name in SOURCE_FILES]
    args += [f"-I{_expand(inc, src)}" for inc in INCLUDE_DIRS]
    args += list(COMMON_FLAGS)
    return args


def compile_command(
    layout: BuildLayout,
    profile: PlatformProfile,
    target: TargetDescriptor,
) -> List[str]:
    """
    Full argv for building *target*:

        <cxx> <common> <platform> <target extra flags> [-install_name ...] -o <artifact>
    """
    src = layout.source_path
    cmd = [compiler_for(layout, profile)]
    cmd += common_args(layout)
    cmd += [_expand(flag, src) for flag in profile.platform_flags]
    cmd += list(target.extra_flags)
    if profile.set_install_name:
        cmd += ["-install_name", f"@rpath/{target.output_file_name}"]
    cmd += ["-o", str(target.artifact_path)]
    return cmd
