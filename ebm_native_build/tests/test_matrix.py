"""
test_matrix — target descriptors and build-matrix expansion.

Invariants:
  - release before debug, x64 before x86, x86 only on Linux and only
    when requested.
  - output file names are unique per (platform, arch, build type).
  - per-target directories follow tmp/<toolchain>/{intermediate,bin}/...
"""
from pathlib import Path

import pytest

from ebm_native_build.core.matrix import expand_matrix
from ebm_native_build.core.targets import (
    Arch,
    BuildType,
    Platform,
    make_target,
    output_file_name,
)
from ebm_native_build.policy.profile import PlatformProfile


def _keys(matrix):
    return [t.key for t in matrix]


class TestPlatformProbe:

    @pytest.mark.parametrize(
        "os_type, expected",
        [
            ("Linux", Platform.LINUX),
            ("Linux\n", Platform.LINUX),
            ("Darwin", Platform.MACOS),
            ("Plan9", None),
            ("MINGW64_NT-10.0", None),
            ("linux", None),
            ("", None),
        ],
    )
    def test_from_probe(self, os_type, expected):
        assert Platform.from_probe(os_type) is expected


class TestMatrixOrder:

    def test_linux_without_32bit(self, layout):
        matrix = expand_matrix(layout, PlatformProfile.linux())
        assert _keys(matrix) == ["linux-release-x64", "linux-debug-x64"]

    def test_linux_with_32bit(self, layout):
        matrix = expand_matrix(layout, PlatformProfile.linux(), include_32bit=True)
        assert _keys(matrix) == [
            "linux-release-x64",
            "linux-debug-x64",
            "linux-release-x86",
            "linux-debug-x86",
        ]

    @pytest.mark.parametrize("include_32bit", [False, True])
    def test_macos_never_builds_32bit(self, layout, include_32bit):
        matrix = expand_matrix(layout, PlatformProfile.macos(), include_32bit)
        assert _keys(matrix) == ["mac-release-x64", "mac-debug-x64"]

    def test_matrix_is_immutable(self, layout):
        matrix = expand_matrix(layout, PlatformProfile.linux())
        assert isinstance(matrix, tuple)
        with pytest.raises(Exception):
            matrix[0].output_file_name = "other.so"

    def test_only_x86_targets_are_cross(self, layout):
        matrix = expand_matrix(layout, PlatformProfile.linux(), include_32bit=True)
        assert [t.is_cross for t in matrix] == [False, False, True, True]


class TestTargetNaming:

    @pytest.mark.parametrize(
        "platform, arch, build_type, expected",
        [
            (Platform.MACOS, Arch.X64, BuildType.RELEASE, "lib_ebm_native_mac_x64.dylib"),
            (Platform.MACOS, Arch.X64, BuildType.DEBUG, "lib_ebm_native_mac_x64_debug.dylib"),
            (Platform.LINUX, Arch.X64, BuildType.RELEASE, "lib_ebm_native_linux_x64.so"),
            (Platform.LINUX, Arch.X64, BuildType.DEBUG, "lib_ebm_native_linux_x64_debug.so"),
            (Platform.LINUX, Arch.X86, BuildType.RELEASE, "lib_ebm_native_linux_x86.so"),
            (Platform.LINUX, Arch.X86, BuildType.DEBUG, "lib_ebm_native_linux_x86_debug.so"),
        ],
    )
    def test_output_file_name(self, platform, arch, build_type, expected):
        assert output_file_name(platform, arch, build_type) == expected

    def test_output_names_unique(self):
        names = {
            output_file_name(p, a, b)
            for p in Platform for a in Arch for b in BuildType
        }
        assert len(names) == len(Platform) * len(Arch) * len(BuildType)

    def test_linux_layout(self, layout, project_root):
        t = make_target(layout, Platform.LINUX, Arch.X86, BuildType.DEBUG)
        tmp = project_root / "tmp" / "gcc"
        assert t.intermediate_dir == tmp / "intermediate/debug/linux/x86/ebm_native"
        assert t.output_dir == tmp / "bin/debug/linux/x86/ebm_native"
        assert t.log_file == t.intermediate_dir / "ebm_native_debug_linux_x86_build_log.txt"
        assert t.artifact_path == t.output_dir / "lib_ebm_native_linux_x86_debug.so"
        assert t.label == "Linux debug|x86"

    def test_macos_layout(self, layout, project_root):
        t = make_target(layout, Platform.MACOS, Arch.X64, BuildType.RELEASE)
        assert t.output_dir == (
            project_root / "tmp" / "clang" / "bin/release/mac/x64/ebm_native"
        )
        assert t.label == "macOS release|x64"

    def test_distinct_directories_per_target(self, layout):
        matrix = expand_matrix(layout, PlatformProfile.linux(), include_32bit=True)
        assert len({t.intermediate_dir for t in matrix}) == 4
        assert len({t.output_dir for t in matrix}) == 4


class TestExtraFlags:

    def test_linux_target_flags(self, layout):
        flags = {t.key: t.extra_flags for t in expand_matrix(
            layout, PlatformProfile.linux(), include_32bit=True)}
        assert flags == {
            "linux-release-x64": ("-m64", "-DNDEBUG"),
            "linux-debug-x64": ("-m64",),
            "linux-release-x86": ("-m32", "-DNDEBUG"),
            "linux-debug-x86": ("-m32",),
        }

    def test_macos_debug_is_sanitized(self, layout):
        debug = expand_matrix(layout, PlatformProfile.macos())[1]
        assert debug.extra_flags == (
            "-m64",
            "-fsanitize=address,undefined",
            "-fno-omit-frame-pointer",
        )
