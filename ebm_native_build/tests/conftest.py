"""
Shared pytest fixtures for ebm_native_build tests.

Provides a project tree under tmp_path and a scripted executor that
stands in for ``uname``, the C++ compiler and the multilib installer.
Filesystem steps (mkdir, log write, copy) run for real against tmp_path,
so staging and log assertions look at actual files.
"""
import io
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from ebm_native_build.config import BuildLayout, Settings
from ebm_native_build.core.executor import EXIT_COMMAND_NOT_FOUND, StepExecutor


COMPILER_OUTPUT = "warning: unused variable 'x'\nnote: in expansion of macro\n"


def artifact_bytes(path: Path) -> bytes:
    """Deterministic fake library contents, distinct per artifact."""
    return b"\x00FAKE-SHARED-LIBRARY\x00" + path.name.encode("utf-8")


class FakeExecutor(StepExecutor):
    """
    StepExecutor whose external commands are scripted.

    calls  — (kind, argv) for every external command, in order
             kind is one of: uname, probe, install, compile, other
    """

    def __init__(
        self,
        os_type: str = "Linux",
        multilib_installed: bool = True,
        install_exit: int = 0,
        compile_failures: Optional[Dict[str, int]] = None,
        compile_output: str = COMPILER_OUTPUT,
        missing_tools: Tuple[str, ...] = (),
    ):
        super().__init__()
        self.os_type = os_type
        self.multilib_installed = multilib_installed
        self.install_exit = install_exit
        self.compile_failures = compile_failures or {}
        self.compile_output = compile_output
        self.missing_tools = missing_tools
        self.calls: List[Tuple[str, List[str]]] = []
        self.watch: List[Path] = []
        self.seen_at_install: Dict[Path, bool] = {}

    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.calls]

    def compiled(self) -> List[str]:
        """File names of every artifact the compiler was asked to produce."""
        return [
            Path(argv[argv.index("-o") + 1]).name
            for kind, argv in self.calls
            if kind == "compile"
        ]

    def _spawn(self, argv, input):
        tool = argv[0]
        if tool in self.missing_tools:
            self.calls.append(("other", list(argv)))
            return EXIT_COMMAND_NOT_FOUND, f"{tool}: command not found"

        if tool == "uname":
            self.calls.append(("uname", list(argv)))
            return 0, self.os_type + "\n"

        if tool == "sudo":
            self.calls.append(("install", list(argv)))
            self.seen_at_install = {p: p.exists() for p in self.watch}
            if self.install_exit == 0:
                self.multilib_installed = True
                return 0, "Setting up g++-multilib ...\n"
            return self.install_exit, "E: Unable to locate package g++-multilib\n"

        if "-x" in argv and "-" in argv:
            self.calls.append(("probe", list(argv)))
            if "-m32" in argv and not self.multilib_installed:
                return 1, "/usr/bin/ld: cannot find -lstdc++\n"
            return 0, ""

        self.calls.append(("compile", list(argv)))
        out_path = Path(argv[argv.index("-o") + 1])
        code = self.compile_failures.get(out_path.name, 0)
        if code:
            return code, f"error: build of {out_path.name} failed\n"
        out_path.write_bytes(artifact_bytes(out_path))
        return 0, self.compile_output


@pytest.fixture
def project_root(tmp_path) -> Path:
    root = tmp_path / "interpret"
    root.mkdir()
    return root


@pytest.fixture
def settings(project_root) -> Settings:
    return Settings(ROOT_PATH=str(project_root))


@pytest.fixture
def layout(settings) -> BuildLayout:
    return settings.layout()


@pytest.fixture
def console() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()
