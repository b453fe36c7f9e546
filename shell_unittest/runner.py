"""Execution of selected tests with setup, teardown and result tracking."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from shell_unittest.capture import exit_status
from shell_unittest.context import TestContext
from shell_unittest.errors import SkipTest
from shell_unittest.models.options import RunOptions
from shell_unittest.models.registry import TestEntry
from shell_unittest.models.result import ResultSets
from shell_unittest.registry import TestRegistry
from shell_unittest.reporter import Reporter

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class TestRunner:
    """Runs tests one at a time, each with a fresh context."""

    __test__ = False

    registry: TestRegistry
    options: RunOptions
    reporter: Reporter = field(default_factory=Reporter)
    results: ResultSets = field(default_factory=ResultSets)

    def run(self, names: Sequence[str]) -> ResultSets:
        """Run the named tests in order.

        Args:
            names: Test names, as returned by ``select_tests``.

        Returns:
            The accumulated results, reset at the start of the run.

        """
        self.results.reset()
        log.debug("Running %d test(s)", len(names))
        for name in names:
            self.run_test(self.registry.get(name))
        return self.results

    def run_test(self, entry: TestEntry) -> TestContext:
        """Run a single test through setup, body and teardown.

        A skip raised by the setup hook also skips the body. The teardown
        hook runs in every case.
        """
        context = TestContext(
            name=entry.name,
            description=entry.description,
            force_run=self.options.force_run,
        )
        log.debug("Starting %s", entry.name)

        if self.registry.setup_hook is not None:
            self._invoke(self.registry.setup_hook, context)
        if not context.skipped:
            self._invoke(entry.func, context)
        if self.registry.teardown_hook is not None:
            self._invoke(self.registry.teardown_hook, context)

        category = self.results.categorize(entry.name, context)
        log.debug("Finished %s: %s", entry.name, category)
        self.reporter.print_result(context, category)
        return context

    def _invoke(
        self, func: Callable[[TestContext], Any], context: TestContext
    ) -> None:
        filename = getattr(getattr(func, "__code__", None), "co_filename", None)
        try:
            func(context)
        except SkipTest as exc:
            if not context.force_run:
                context.skipped = True
                context.skip_note = exc.note
            log.debug("Skipped %s: %s", context.name, exc.note or "no note")
        except SystemExit as exc:
            if exit_status(exc.code) != 0:
                context.trap_exception(exc, filename)
        except Exception as exc:
            context.trap_exception(exc, filename)
