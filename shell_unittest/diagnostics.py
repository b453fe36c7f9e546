"""Source-location diagnostics and terminal color helpers."""

import inspect
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from types import FrameType

PACKAGE_DIR = Path(__file__).resolve().parent

RESET = "\x1b[0m"

_script: ContextVar[Path | None] = ContextVar("script", default=None)


def is_internal(frame: FrameType) -> bool:
    """Check whether a frame belongs to the engine itself."""
    filename = frame.f_code.co_filename
    if filename.startswith("<"):
        return False
    return Path(filename).resolve().is_relative_to(PACKAGE_DIR)


def caller_frame(depth: int = 0) -> FrameType:
    """Return the first frame outside the engine, then walk ``depth`` more frames.

    Args:
        depth: Number of additional frames to climb above the first
            non-engine frame.

    Returns:
        The selected frame. If the stack runs out, the outermost frame.

    Raises:
        RuntimeError: If the interpreter provides no stack frames.

    """
    current = inspect.currentframe()
    if current is None or current.f_back is None:
        raise RuntimeError("The interpreter does not support call stack inspection")
    frame = current.f_back
    while frame.f_back is not None and is_internal(frame):
        frame = frame.f_back
    for _ in range(depth):
        if frame.f_back is None:
            break
        frame = frame.f_back
    return frame


@contextmanager
def script_location(script: Path) -> Iterator[None]:
    """Attribute diagnostics to a script that was loaded by path.

    Frames from the script itself are reported as they are. Diagnostics
    raised from any other caller name the top level of the script.
    """
    token = _script.set(script)
    try:
        yield
    finally:
        _script.reset(token)


def in_script(frame: FrameType, script: Path) -> bool:
    """Check whether a frame runs code from the given script."""
    filename = frame.f_code.co_filename
    if filename.startswith("<"):
        return False
    return Path(filename).resolve() == script.resolve()


def error_message(message: str, show_location: bool = True, depth: int = 0) -> str:
    """Format a diagnostic naming the calling file, line and function.

    The location is taken from the first frame outside the engine, which is
    the host script statement that led to the error. Inside
    ``script_location`` a caller outside the loaded script is reported as
    line 1 of that script.

        >>> error_message("oops")  # doctest: +SKIP
        'test_example.py:12 [in testcase_foo()] oops'

    Args:
        message: The text of the diagnostic.
        show_location: Prefix the message with the source location.
        depth: Extra frames to climb above the first non-engine frame.

    """
    if not show_location:
        return message
    frame = caller_frame(depth)
    script = _script.get()
    if script is not None and not in_script(frame, script):
        return f"{script}:1 [in <module>()] {message}"
    code = frame.f_code
    return f"{code.co_filename}:{frame.f_lineno} [in {code.co_name}()] {message}"


def _sgr_code(color: int) -> str:
    if color < 8:
        return str(30 + color)
    if color < 16:
        return str(90 + color - 8)
    return f"38;5;{color}"


def colorize(color: int | str, text: str) -> str:
    """Wrap text in ANSI escape codes for one of the 256 terminal colors.

    Raises:
        ValueError: If the color is not an integer between 0 and 255.

    """
    if isinstance(color, str):
        if not color.isdigit():
            raise ValueError(
                f"Provide an integer as the first argument instead of '{color}'"
            )
        color = int(color)
    if not 0 <= color <= 255:
        raise ValueError(
            f"The color code {color} is not supported, provide between 0-255"
        )
    return f"\x1b[{_sgr_code(color)}m{text}{RESET}"
