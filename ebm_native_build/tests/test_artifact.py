"""
test_artifact — artifact hashing and ELF header inspection.
"""
import hashlib
import sys
from pathlib import Path

import pytest

from ebm_native_build.core.artifact import ELF_MAGIC, inspect_artifact, read_elf_header
from ebm_native_build.core.targets import Arch


def _is_elf(path: Path) -> bool:
    with open(path, "rb") as f:
        return f.read(4) == ELF_MAGIC


class TestHashing:

    def test_matches_hashlib(self, tmp_path):
        lib = tmp_path / "lib_ebm_native_mac_x64.dylib"
        payload = b"\xcf\xfa\xed\xfe" + b"\x00" * 1000
        lib.write_bytes(payload)

        info = inspect_artifact(lib)

        assert info.sha256 == hashlib.sha256(payload).hexdigest()
        assert info.size_bytes == len(payload)
        assert info.elf is None


class TestElfHeader:

    def test_non_elf_returns_none(self, tmp_path):
        f = tmp_path / "not_elf.so"
        f.write_bytes(b"MZ\x90\x00")
        assert read_elf_header(f) is None

    def test_truncated_elf_returns_none(self, tmp_path):
        f = tmp_path / "truncated.so"
        f.write_bytes(ELF_MAGIC + b"\x02")
        assert read_elf_header(f) is None

    def test_real_elf(self):
        exe = Path(sys.executable).resolve()
        if not _is_elf(exe):
            pytest.skip("interpreter is not an ELF binary")

        header = read_elf_header(exe)

        assert header.elf_class in (32, 64)
        assert header.elf_type in ("ET_EXEC", "ET_DYN")
        assert header.machine.startswith("EM_")

    def test_class_mismatch_is_only_a_warning(self, caplog):
        exe = Path(sys.executable).resolve()
        if not _is_elf(exe) or read_elf_header(exe).elf_class != 64:
            pytest.skip("needs a 64-bit ELF interpreter")

        with caplog.at_level("WARNING"):
            info = inspect_artifact(exe, Arch.X86)

        assert info.elf.elf_class == 64
        assert "expects 32" in caplog.text
