"""
Schema — Pydantic models for build_receipt.json.

One receipt per invocation, written for every run on a recognised host
(successful or not).  It records what was requested, which targets ran,
every step's exit code, and the hash of each produced artifact.

Runtime contract fields (present in every receipt):
  package_name, package_version, schema_version.
"""
from datetime import datetime, timezone
from enum import Enum, unique
from typing import List, Optional

from pydantic import BaseModel, Field

from ebm_native_build import PACKAGE_NAME, SCHEMA_VERSION, __version__


@unique
class TargetStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    NOT_RUN = "NOT_RUN"   # never attempted after an earlier failure


# ── Step / artifact records ──────────────────────────────────────────────────

class StepRecord(BaseModel):
    name: str
    command: str
    exit_code: int
    duration_ms: int = 0


class ElfInfo(BaseModel):
    elf_class: int
    elf_type: str
    machine: str


class ArtifactRecord(BaseModel):
    file_name: str
    path: str
    sha256: str
    size_bytes: int
    elf: Optional[ElfInfo] = None
    staged_to: List[str] = Field(default_factory=list)


# ── Per-target record ────────────────────────────────────────────────────────

class TargetRecord(BaseModel):
    key: str                 # e.g. linux-release-x64
    label: str               # e.g. Linux release|x64
    platform: str
    arch: str
    build_type: str
    output_file_name: str
    log_file: str

    status: TargetStatus = TargetStatus.NOT_RUN
    exit_code: Optional[int] = None
    failed_step: Optional[str] = None
    steps: List[StepRecord] = Field(default_factory=list)
    artifact: Optional[ArtifactRecord] = None


# ── Receipt ──────────────────────────────────────────────────────────────────

class MatrixReceipt(BaseModel):
    """Wrapper for build_receipt.json."""

    package_name: str = PACKAGE_NAME
    package_version: str = __version__
    schema_version: str = SCHEMA_VERSION

    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    finished_at: Optional[str] = None

    host_platform: str
    profile_id: str
    compiler: str
    include_32bit: bool = False

    exit_code: Optional[int] = None
    targets: List[TargetRecord] = Field(default_factory=list)

    def mark_finished(self, exit_code: int):
        self.exit_code = exit_code
        self.finished_at = datetime.now(timezone.utc).isoformat()
