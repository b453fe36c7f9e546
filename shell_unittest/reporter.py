"""Formatting of per-test results, the run summary and the test list."""

import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TextIO

from shell_unittest.context import TestContext
from shell_unittest.diagnostics import colorize
from shell_unittest.helpers import pluralize
from shell_unittest.models.result import Category, ResultSets
from shell_unittest.registry import TestRegistry

PASS_MARK = "✓"
FAIL_MARK = "✗"
SKIP_MARK = "-"

FAIL_COLOR = 1
FAIL_DETAIL_COLOR = 9


def format_pass(context: TestContext) -> Sequence[str]:
    """Format a passed test."""
    return [f" {PASS_MARK} {context.description}"]


def format_fail(context: TestContext, color: bool = False) -> Sequence[str]:
    """Format a failed test followed by the location of every failure."""

    def paint(code: int, text: str) -> str:
        return colorize(code, text) if color else text

    lines = [paint(FAIL_COLOR, f" {FAIL_MARK} {context.description}")]
    for failure in context.failures:
        lines.append(
            paint(
                FAIL_DETAIL_COLOR,
                f"   (in test file {failure.source}, line {failure.lineno})",
            )
        )
        lines.append(
            paint(
                FAIL_DETAIL_COLOR,
                f"     `{failure.statement}' failed with {failure.status}",
            )
        )
        if failure.message:
            lines.append(paint(FAIL_DETAIL_COLOR, f"     {failure.message}"))
    return lines


def format_skip(context: TestContext) -> Sequence[str]:
    """Format a skipped test, with its note if one was given."""
    if context.skip_note:
        return [f" {SKIP_MARK} {context.description} (skipped: {context.skip_note})"]
    return [f" {SKIP_MARK} {context.description} (skipped)"]


def format_summary(results: ResultSets) -> str:
    """Format the totals of a run."""
    executed = len(results.executed)
    failed = len(results.failed)
    return (
        f"{executed} {pluralize('test', executed)}, "
        f"{len(results.passed)} passed, "
        f"{failed} {pluralize('failure', failed)}, "
        f"{len(results.skipped)} skipped"
    )


def format_test_list(registry: TestRegistry) -> Sequence[str]:
    """Format every registered test as ``index name: description``."""
    width = len(str(max(len(registry) - 1, 0)))
    return [
        f"{entry.index:>{width}} {entry.name}: {entry.description}"
        for entry in registry
    ]


def exit_code(results: ResultSets) -> int:
    """Return the process exit status for a finished run."""
    return 1 if results.has_failures else 0


@dataclass(frozen=True, kw_only=True)
class Reporter:
    """Writes results to a text stream as tests finish."""

    stream: TextIO = field(default_factory=lambda: sys.stdout)
    color: bool = False

    def print_result(self, context: TestContext, category: Category) -> None:
        """Print the result line(s) for a finished test."""
        match category:
            case "passed":
                lines = format_pass(context)
            case "failed":
                lines = format_fail(context, self.color)
            case "skipped":
                lines = format_skip(context)
        for line in lines:
            print(line, file=self.stream)
        self.stream.flush()

    def print_summary(self, results: ResultSets) -> None:
        """Print the totals of a run."""
        print(file=self.stream)
        print(format_summary(results), file=self.stream)

    def print_test_list(self, registry: TestRegistry) -> None:
        """Print the registered tests."""
        for line in format_test_list(registry):
            print(line, file=self.stream)
