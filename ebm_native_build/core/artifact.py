"""
Artifact — describe a produced shared library.

Records the content hash and size of the artifact and, for ELF outputs
(Linux), the header facts that tell a 32-bit from a 64-bit library.
Mach-O outputs (macOS) get hash and size only.

This module never fails a build: it is called after the compile step has
already succeeded and only feeds the receipt and the log.
"""
import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

from ebm_native_build.core.targets import Arch

logger = logging.getLogger(__name__)

ELF_MAGIC = b"\x7fELF"

EXPECTED_ELF_CLASS = {
    Arch.X64: 64,
    Arch.X86: 32,
}


@dataclass(frozen=True)
class ElfHeader:
    elf_class: int   # 32 or 64
    elf_type: str    # ET_DYN for shared libraries
    machine: str     # EM_X86_64, EM_386, ...


@dataclass(frozen=True)
class ArtifactInfo:
    path: Path
    sha256: str
    size_bytes: int
    elf: Optional[ElfHeader] = None


def hash_file(path: Path) -> str:
    """SHA-256 of a file."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def read_elf_header(path: Path) -> Optional[ElfHeader]:
    """Return ELF header facts, or None if *path* is not an ELF file."""
    with open(path, "rb") as f:
        if f.read(4) != ELF_MAGIC:
            return None
        f.seek(0)
        try:
            elf = ELFFile(f)
        except ELFError as e:
            logger.warning(f"ELF header unreadable for {path}: {e}")
            return None
        return ElfHeader(
            elf_class=elf.elfclass,
            elf_type=elf.header["e_type"],
            machine=elf.header["e_machine"],
        )


def inspect_artifact(path: Path, arch: Optional[Arch] = None) -> ArtifactInfo:
    """
    Hash *path* and read its ELF header if it has one.

    When *arch* is given, a word-size mismatch between the ELF class and
    the requested arch is logged as a warning.
    """
    elf = read_elf_header(path)
    if elf is not None and arch is not None:
        expected = EXPECTED_ELF_CLASS[arch]
        if elf.elf_class != expected:
            logger.warning(
                f"{path.name}: ELF class {elf.elf_class} but {arch.value} "
                f"expects {expected}"
            )
    return ArtifactInfo(
        path=path,
        sha256=hash_file(path),
        size_bytes=path.stat().st_size,
        elf=elf,
    )
