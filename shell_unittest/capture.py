"""Run commands and capture their merged output without raising."""

import io
import logging
import os
import subprocess
import sys
from collections.abc import Callable, Mapping
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from typing import Any, TextIO

from shell_unittest.errors import SkipTest
from shell_unittest.models.result import CaptureResult

log = logging.getLogger(__name__)

COMMAND_NOT_FOUND = 127
COMMAND_NOT_EXECUTABLE = 126


def capture(
    *command: Any,
    cwd: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> CaptureResult:
    """Run a command, capturing stdout and stderr merged into one stream.

    The first element is either an executable name or a Python callable. A
    callable runs in-process with ``sys.stdout`` and ``sys.stderr`` redirected
    into the capture buffer; output written straight to the file descriptors
    by its children is not captured. A skip requested inside the callable ends
    it with status 0.

    Args:
        command: Program and arguments. No arguments is a successful no-op.
        cwd: Working directory for an external command.
        env: Environment for an external command.

    Returns:
        The exit status and merged output. The command failing, or not being
        found at all, is reported in the status rather than raised.

    """
    if not command:
        return CaptureResult()

    program, *args = command
    if callable(program):
        result = _capture_callable(program, args)
    else:
        result = _capture_process(program, args, cwd=cwd, env=env)

    log.debug(
        "Captured %r: status=%d lines=%d", program, result.status, len(result.lines)
    )
    return result


def build_argv(program: str | os.PathLike[str], args: list[Any]) -> list[str]:
    """Convert a program and its arguments to strings for subprocess."""
    return [
        os.fspath(program),
        *(os.fspath(a) if isinstance(a, os.PathLike) else str(a) for a in args),
    ]


def _capture_process(
    program: str | os.PathLike[str],
    args: list[Any],
    cwd: str | Path | None,
    env: Mapping[str, str] | None,
) -> CaptureResult:
    argv = build_argv(program, args)
    try:
        completed = subprocess.run(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            cwd=cwd,
            env=env,
            check=False,
        )
    except FileNotFoundError:
        return CaptureResult.from_output(
            COMMAND_NOT_FOUND, f"{argv[0]}: command not found"
        )
    except PermissionError:
        return CaptureResult.from_output(
            COMMAND_NOT_EXECUTABLE, f"{argv[0]}: permission denied"
        )
    output = completed.stdout.decode(errors="replace")
    return CaptureResult.from_output(process_status(completed.returncode), output)


def _capture_callable(func: Callable[..., Any], args: list[Any]) -> CaptureResult:
    buffer = io.StringIO()
    with redirect_stdout(buffer), redirect_stderr(buffer):
        try:
            status = return_status(func(*args))
        except SkipTest:
            status = 0
        except SystemExit as exc:
            status = exit_status(exc.code, buffer)
        except Exception as exc:
            log.debug("Captured callable %r raised %r", func, exc)
            print(str(exc) or type(exc).__name__, file=buffer)
            status = 1
    return CaptureResult.from_output(status, buffer.getvalue())


def process_status(returncode: int) -> int:
    """Convert a subprocess return code to a shell-style exit status.

    Processes killed by a signal report ``128 + signal`` as a shell does.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


def return_status(value: Any) -> int:
    """Convert the return value of a callable to an exit status."""
    if value is None or value is True:
        return 0
    if value is False:
        return 1
    if isinstance(value, int):
        return value
    return 0


def exit_status(code: Any, stream: TextIO | None = None) -> int:
    """Convert a ``SystemExit`` code to an exit status.

    Non-integer codes are written to ``stream``, as the interpreter does on
    exit, and count as status 1.
    """
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    if stream is not None:
        print(code, file=stream)
    return 1


def execute(
    *command: Any,
    cwd: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> int:
    """Run a command with inherited stdout and stderr, returning its status.

    Unlike ``capture`` nothing is recorded; the status is left to the caller
    to act on. A callable's exceptions are reported on stderr as status 1,
    except a skip, which propagates to end the test.
    """
    if not command:
        return 0

    program, *args = command
    if callable(program):
        try:
            return return_status(program(*args))
        except SkipTest:
            raise
        except SystemExit as exc:
            return exit_status(exc.code, sys.stderr)
        except Exception as exc:
            log.debug("Callable %r raised %r", program, exc)
            print(str(exc) or type(exc).__name__, file=sys.stderr)
            return 1

    argv = build_argv(program, args)
    try:
        completed = subprocess.run(argv, cwd=cwd, env=env, check=False)
    except FileNotFoundError:
        print(f"{argv[0]}: command not found", file=sys.stderr)
        return COMMAND_NOT_FOUND
    except PermissionError:
        print(f"{argv[0]}: permission denied", file=sys.stderr)
        return COMMAND_NOT_EXECUTABLE
    return process_status(completed.returncode)
