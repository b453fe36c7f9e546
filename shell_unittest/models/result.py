"""Models for test execution results."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, TypeAlias

if TYPE_CHECKING:
    from shell_unittest.context import TestContext

Category: TypeAlias = Literal["passed", "failed", "skipped"]


@dataclass(frozen=True, kw_only=True)
class CaptureResult:
    """Status and merged output of a captured command."""

    status: int = 0
    output: str = ""
    lines: Sequence[str] = ()

    @classmethod
    def from_output(cls, status: int, output: str) -> "CaptureResult":
        """Build a result, stripping one trailing newline from the output.

        Lines are split on newlines only, so carriage returns and other line
        boundaries stay part of the line they appear in.
        """
        output = output.removesuffix("\n")
        lines = tuple(output.split("\n")) if output else ()
        return cls(status=status, output=output, lines=lines)


@dataclass(frozen=True, kw_only=True)
class Failure:
    """A failing statement recorded while a test was running."""

    source: str
    lineno: int
    status: int
    statement: str
    message: str | None = None


@dataclass(kw_only=True)
class ResultSets:
    """Names of tests grouped by outcome, accumulated over a whole run."""

    executed: list[str] = field(default_factory=list)
    passed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def reset(self) -> None:
        """Clear every group."""
        self.executed.clear()
        self.passed.clear()
        self.failed.clear()
        self.skipped.clear()

    def categorize(self, name: str, context: "TestContext") -> Category:
        """Record a finished test in exactly one outcome group.

        A skip takes precedence over failures trapped before the skip fired.
        """
        self.executed.append(name)
        if context.skipped:
            self.skipped.append(name)
            return "skipped"
        if context.failed:
            self.failed.append(name)
            return "failed"
        self.passed.append(name)
        return "passed"

    @property
    def has_failures(self) -> bool:
        """Whether any test failed."""
        return bool(self.failed)
