"""
Profile — compiler flag sets per host platform.

The profile holds every flag opinion so that command composition in
core/ stays mechanical.  Flags are layered strictly in this order:

    sources + includes + COMMON_FLAGS
    + platform flags
    + per-target flags (arch, then build type)

Tokens may contain ``{source}``, which is replaced with the source
directory when the command is composed.
"""
from dataclasses import dataclass, field
from typing import Dict, Tuple

from ebm_native_build.core.targets import Arch, BuildType, Platform


SOURCE_FILES: Tuple[str, ...] = (
    "DataSetByFeature.cpp",
    "DataSetByFeatureCombination.cpp",
    "InteractionDetection.cpp",
    "Logging.cpp",
    "SamplingWithReplacement.cpp",
    "Boosting.cpp",
    "Discretization.cpp",
)

INCLUDE_DIRS: Tuple[str, ...] = ("{source}", "{source}/inc")

EXPORT_MAP = "ebm_native_exports.txt"
WRAP_UNIT = "wrap_func.cpp"

# -Wduplicated-cond -Wduplicated-branches -Wrestrict are left out until
# both g++ and clang support them.
COMMON_FLAGS: Tuple[str, ...] = (
    "-Wall", "-Wextra", "-Wno-parentheses", "-Wold-style-cast",
    "-Wdouble-promotion", "-Wshadow", "-Wformat=2", "-std=c++11",
    "-fvisibility=hidden", "-fvisibility-inlines-hidden", "-O3",
    "-ffast-math", "-fno-finite-math-only", "-march=core2",
    "-DEBM_NATIVE_EXPORTS", "-fpic",
)

ARCH_FLAGS: Dict[Arch, Tuple[str, ...]] = {
    Arch.X64: ("-m64",),
    Arch.X86: ("-m32",),
}


@dataclass(frozen=True)
class PlatformProfile:
    """Flags and tooling conventions for one host platform."""

    profile_id: str
    platform: Platform
    platform_flags: Tuple[str, ...]
    build_type_flags: Dict[BuildType, Tuple[str, ...]] = field(default_factory=dict)

    compiler: str = "gcc"  # "gcc" -> GPP_BIN, "clang" -> CLANG_PP_BIN

    # macOS shared libraries carry an @rpath install name
    set_install_name: bool = False

    def target_flags(self, arch: Arch, build_type: BuildType) -> Tuple[str, ...]:
        """Per-target flags: arch flag first, then build-type flags."""
        return ARCH_FLAGS[arch] + self.build_type_flags.get(build_type, ())

    @classmethod
    def macos(cls) -> "PlatformProfile":
        # clang-only warnings live here until g++ supports them
        return cls(
            profile_id="mac-clang-dylib",
            platform=Platform.MACOS,
            platform_flags=(
                "-Wnull-dereference",
                "-Wgnu-zero-variadic-macro-arguments",
                "-dynamiclib",
            ),
            build_type_flags={
                BuildType.RELEASE: ("-DNDEBUG",),
                BuildType.DEBUG: (
                    "-fsanitize=address,undefined",
                    "-fno-omit-frame-pointer",
                ),
            },
            compiler="clang",
            set_install_name=True,
        )

    @classmethod
    def linux(cls) -> "PlatformProfile":
        # memcpy is wrapped and the wrapper unit linked in on every Linux build
        return cls(
            profile_id="linux-gcc-so",
            platform=Platform.LINUX,
            platform_flags=(
                "-Wlogical-op",
                "-Wl,--version-script={source}/" + EXPORT_MAP,
                "-Wl,--exclude-libs,ALL",
                "-Wl,-z,relro,-z,now",
                "-Wl,--wrap=memcpy",
                "{source}/" + WRAP_UNIT,
                "-static-libgcc",
                "-static-libstdc++",
                "-shared",
            ),
            build_type_flags={
                BuildType.RELEASE: ("-DNDEBUG",),
                BuildType.DEBUG: (),
            },
        )

    @classmethod
    def for_platform(cls, platform: Platform) -> "PlatformProfile":
        if platform is Platform.MACOS:
            return cls.macos()
        return cls.linux()
