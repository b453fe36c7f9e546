"""Per-test execution state and the failure trap."""

import linecache
import logging
import os
import traceback
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from shell_unittest.capture import capture, execute, exit_status
from shell_unittest.diagnostics import caller_frame
from shell_unittest.errors import SkipTest
from shell_unittest.models.result import CaptureResult, Failure

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class TestContext:
    """State of the test currently running.

    A context is created for every test, handed to the setup hook, the test
    body and the teardown hook, and dropped once the test is categorized.
    Failing statements are recorded here instead of aborting the test.
    """

    __test__ = False

    name: str
    description: str
    force_run: bool = False
    skipped: bool = False
    skip_requested: bool = False
    skip_note: str = ""
    failures: list[Failure] = field(default_factory=list)
    result: CaptureResult = field(default_factory=CaptureResult)
    in_run: bool = False

    @property
    def failed(self) -> bool:
        """Whether any failure was trapped during the test."""
        return bool(self.failures)

    @property
    def status(self) -> int:
        """Exit status of the last captured command."""
        return self.result.status

    @property
    def output(self) -> str:
        """Merged output of the last captured command."""
        return self.result.output

    @property
    def lines(self) -> Sequence[str]:
        """Output lines of the last captured command."""
        return self.result.lines

    def describe(self, *parts: Any) -> str:
        """Replace the description shown in the report for this test."""
        description = " ".join(str(part) for part in parts)
        self.description = description if description.strip() else self.name
        return self.description

    def skip(self, note: str = "") -> None:
        """Skip the rest of the test.

        Inside ``run`` only the captured callable ends; the test itself is
        neither skipped nor marked as having asked for a skip.

        Raises:
            SkipTest: Unless the run forces skipped tests to run, in which
                case the request is only recorded and the test goes on.

        """
        if self.in_run:
            if self.force_run:
                return
            raise SkipTest(note)
        self.skip_requested = True
        self.skip_note = note
        if self.force_run:
            log.debug("Ignoring skip of %s, force run is enabled", self.name)
            return
        self.skipped = True
        raise SkipTest(note)

    def run(
        self,
        *command: Any,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CaptureResult:
        """Capture a command; its failure is returned as data, never trapped."""
        self.in_run = True
        try:
            self.result = capture(*command, cwd=cwd, env=env)
        finally:
            self.in_run = False
        return self.result

    def call(
        self,
        *command: Any,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> int:
        """Run a command with inherited output and trap a nonzero status."""
        status = execute(*command, cwd=cwd, env=env)
        if status != 0:
            self.trap(status)
        return status

    def check(self, condition: Any, status: int = 1) -> bool:
        """Trap a failure at the calling statement if ``condition`` is false.

        The test keeps running either way; the result is returned so callers
        can branch on it.
        """
        if not condition:
            self.trap(status)
        return bool(condition)

    def trap(
        self, status: int, *, depth: int = 0, message: str | None = None
    ) -> Failure | None:
        """Record a failure at the first statement outside the engine.

        Args:
            status: Exit status of the failing statement.
            depth: Extra frames to climb, for helpers that check on behalf
                of their caller.
            message: Optional detail shown under the statement.

        Returns:
            The recorded failure, or None inside a captured command.

        """
        if self.in_run:
            return None
        frame = caller_frame(depth)
        return self.record_failure(
            frame.f_code.co_filename, frame.f_lineno, status, message
        )

    def trap_exception(
        self, exc: BaseException, filename: str | None = None
    ) -> Failure:
        """Record an exception that escaped a test body or hook.

        The reported location is the deepest traceback frame in ``filename``,
        the file defining the test, so the failing test statement is shown
        rather than library internals.
        """
        status = exit_status(exc.code) if isinstance(exc, SystemExit) else 1
        message = "".join(traceback.format_exception_only(exc)).strip()

        frames = traceback.extract_tb(exc.__traceback__)
        if filename is not None:
            target = os.path.abspath(filename)
            frames = [
                frame for frame in frames if os.path.abspath(frame.filename) == target
            ] or frames
        if not frames:
            return self.record_failure("<unknown>", 0, status, message)

        frame = frames[-1]
        return self.record_failure(frame.filename, frame.lineno or 0, status, message)

    def record_failure(
        self, source: str, lineno: int, status: int, message: str | None = None
    ) -> Failure:
        """Append a failure and mark the test as failed."""
        failure = Failure(
            source=source,
            lineno=lineno,
            status=status,
            statement=linecache.getline(source, lineno).strip(),
            message=message,
        )
        self.failures.append(failure)
        log.debug(
            "Trapped failure in %s at %s:%d (status %d)",
            self.name,
            source,
            lineno,
            status,
        )
        return failure
