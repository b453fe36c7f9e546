"""Fixtures for integration tests."""

import subprocess
import sys
from pathlib import Path
from typing import Protocol

import pytest


class WriteScriptFn(Protocol):
    """Protocol for script creation function."""

    def __call__(self, source: str, name: str = "test_script.py") -> Path:
        """Write a test script and return its path."""


class RunScriptFn(Protocol):
    """Protocol for script execution function."""

    def __call__(
        self, script: Path, *args: str, via_loader: bool = False
    ) -> subprocess.CompletedProcess[str]:
        """Run a test script and return the completed process."""


@pytest.fixture
def write_script(tmp_path: Path) -> WriteScriptFn:
    """Return a function to write test scripts into a temporary directory."""

    def _write(source: str, name: str = "test_script.py") -> Path:
        script = tmp_path / name
        script.write_text(source)
        return script

    return _write


@pytest.fixture
def run_script(tmp_path: Path) -> RunScriptFn:
    """Return a function running a script directly or through the loader."""

    def _run(
        script: Path, *args: str, via_loader: bool = False
    ) -> subprocess.CompletedProcess[str]:
        if via_loader:
            command = [sys.executable, "-m", "shell_unittest", script.name, *args]
        else:
            command = [sys.executable, script.name, *args]
        return subprocess.run(
            command,
            cwd=tmp_path,
            capture_output=True,
            text=True,
            check=False,
        )

    return _run
