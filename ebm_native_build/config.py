"""
Build configuration
"""
import shlex
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings


class BuildLayout(BaseModel):
    """
    Immutable paths and tool names for one invocation.

    Derived once from Settings and passed explicitly into the driver,
    the runner and the bootstrapper.
    """
    model_config = ConfigDict(frozen=True)

    root_path: Path
    source_path: Path
    embedded_lib_path: Path
    staging_path: Path
    tmp_path: Path

    clang_pp_bin: str = "clang++"
    gpp_bin: str = "g++"
    platform_probe: List[str] = ["uname"]
    multilib_install: List[str] = ["sudo", "apt-get", "-y", "install", "g++-multilib"]
    step_timeout: Optional[int] = None

    @property
    def staging_destinations(self) -> List[Path]:
        """Embedded-library dir first, general staging dir second."""
        return [self.embedded_lib_path, self.staging_path]

    @property
    def receipt_path(self) -> Path:
        return self.tmp_path / "build_receipt.json"


class Settings(BaseSettings):
    """
    Application settings

    ROOT_PATH is the checkout root (the directory holding ``shared/``
    and ``python/``).  A relative ROOT_PATH, including the default ".",
    is resolved against the current working directory when the layout
    is frozen, so run from the checkout root or set ROOT_PATH.
    """

    # Paths (relative to ROOT_PATH unless absolute)
    ROOT_PATH: str = "."
    SOURCE_SUBDIR: str = "shared/ebm_native"
    EMBEDDED_LIB_SUBDIR: str = "python/interpret-core/interpret/lib"
    STAGING_SUBDIR: str = "staging"
    TMP_SUBDIR: str = "tmp"

    # Tools
    CLANG_PP_BIN: str = "clang++"
    GPP_BIN: str = "g++"
    PLATFORM_PROBE: str = "uname"
    MULTILIB_INSTALL_COMMAND: str = "sudo apt-get -y install g++-multilib"

    # Execution
    STEP_TIMEOUT: Optional[int] = None  # seconds, None = wait forever
    LOG_LEVEL: str = "INFO"
    WRITE_RECEIPT: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

    def layout(self) -> BuildLayout:
        """Freeze the settings into a BuildLayout."""
        root = Path(self.ROOT_PATH).absolute()
        return BuildLayout(
            root_path=root,
            source_path=root / self.SOURCE_SUBDIR,
            embedded_lib_path=root / self.EMBEDDED_LIB_SUBDIR,
            staging_path=root / self.STAGING_SUBDIR,
            tmp_path=root / self.TMP_SUBDIR,
            clang_pp_bin=self.CLANG_PP_BIN,
            gpp_bin=self.GPP_BIN,
            platform_probe=shlex.split(self.PLATFORM_PROBE),
            multilib_install=shlex.split(self.MULTILIB_INSTALL_COMMAND),
            step_timeout=self.STEP_TIMEOUT,
        )
