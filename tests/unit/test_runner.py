"""Tests for the test runner."""

import io

import pytest

from shell_unittest.context import TestContext
from shell_unittest.registry import TestRegistry
from shell_unittest.reporter import Reporter
from shell_unittest.runner import TestRunner
from shell_unittest.testing.factories import RunOptionsFactory


@pytest.fixture
def stream() -> io.StringIO:
    """Collect the report in memory."""
    return io.StringIO()


def make_runner(
    registry: TestRegistry, stream: io.StringIO, *, force_run: bool = False
) -> TestRunner:
    """Create a runner writing to ``stream``."""
    return TestRunner(
        registry=registry,
        options=RunOptionsFactory.build(force_run=force_run),
        reporter=Reporter(stream=stream),
    )


def test_categorizes_passed_test(registry: TestRegistry, stream: io.StringIO) -> None:
    """Puts a test without failures into passed."""

    @registry.testcase("should pass")
    def testcase_pass(t: TestContext) -> None:
        t.check(True)

    results = make_runner(registry, stream).run(registry.names)

    assert results.executed == ["testcase_pass"]
    assert results.passed == ["testcase_pass"]
    assert results.failed == []
    assert results.skipped == []
    assert stream.getvalue() == " ✓ should pass\n"


def test_failures_do_not_stop_the_test(
    registry: TestRegistry, stream: io.StringIO
) -> None:
    """Keeps running the body after a trapped failure."""
    reached: list[int] = []

    @registry.testcase("should fail twice")
    def testcase_fail(t: TestContext) -> None:
        t.check(False)
        reached.append(1)
        t.check(1 == 2)
        reached.append(2)

    runner = make_runner(registry, stream)
    context = runner.run_test(registry.get("testcase_fail"))

    assert reached == [1, 2]
    assert len(context.failures) == 2
    assert runner.results.failed == ["testcase_fail"]


def test_exception_is_trapped_and_run_continues(
    registry: TestRegistry, stream: io.StringIO
) -> None:
    """Records an escaping exception as a failure and runs the next test."""

    @registry.testcase("should raise")
    def testcase_raise(t: TestContext) -> None:
        raise ValueError("unexpected")

    @registry.testcase("should still run")
    def testcase_after(t: TestContext) -> None:
        pass

    results = make_runner(registry, stream).run(registry.names)

    assert results.failed == ["testcase_raise"]
    assert results.passed == ["testcase_after"]
    assert "ValueError: unexpected" in stream.getvalue()
    assert "`raise ValueError(\"unexpected\")' failed with 1" in stream.getvalue()


def test_system_exit_zero_ends_test_successfully(
    registry: TestRegistry, stream: io.StringIO
) -> None:
    """Treats SystemExit(0) as an early return."""

    @registry.testcase
    def testcase_exit(t: TestContext) -> None:
        raise SystemExit(0)

    results = make_runner(registry, stream).run(registry.names)

    assert results.passed == ["testcase_exit"]


def test_skip_short_circuits_body(registry: TestRegistry, stream: io.StringIO) -> None:
    """Stops the body at the skip call."""
    reached: list[str] = []

    @registry.testcase("should be skipped")
    def testcase_skip(t: TestContext) -> None:
        t.skip("not today")
        reached.append("after skip")
        t.check(False)

    results = make_runner(registry, stream).run(registry.names)

    assert reached == []
    assert results.skipped == ["testcase_skip"]
    assert results.failed == []
    assert stream.getvalue() == " - should be skipped (skipped: not today)\n"


def test_force_run_ignores_skip(registry: TestRegistry, stream: io.StringIO) -> None:
    """Runs the whole body when skipped tests are forced to run."""
    reached: list[str] = []

    @registry.testcase("should run anyway")
    def testcase_skip(t: TestContext) -> None:
        t.skip()
        reached.append("after skip")

    runner = make_runner(registry, stream, force_run=True)
    context = runner.run_test(registry.get("testcase_skip"))

    assert reached == ["after skip"]
    assert context.skip_requested
    assert runner.results.passed == ["testcase_skip"]
    assert runner.results.skipped == []


def test_skip_inside_run_does_not_skip_test(
    registry: TestRegistry, stream: io.StringIO
) -> None:
    """Keeps running the body when a captured callable skips."""
    reached: list[str] = []

    @registry.testcase("should keep going")
    def testcase_skip_in_run(t: TestContext) -> None:
        t.run(lambda: t.skip("inside run"))
        reached.append("after run")
        t.check(t.status == 0)

    results = make_runner(registry, stream).run(registry.names)

    assert reached == ["after run"]
    assert results.passed == ["testcase_skip_in_run"]
    assert results.skipped == []


def test_skip_inside_call_skips_test(
    registry: TestRegistry, stream: io.StringIO
) -> None:
    """Stops the body when a called helper skips."""
    reached: list[str] = []

    @registry.testcase("should stop")
    def testcase_skip_in_call(t: TestContext) -> None:
        t.call(lambda: t.skip("inside call"))
        reached.append("after call")

    results = make_runner(registry, stream).run(registry.names)

    assert reached == []
    assert results.skipped == ["testcase_skip_in_call"]
    assert results.failed == []
    assert stream.getvalue() == " - should stop (skipped: inside call)\n"


def test_skip_wins_over_earlier_failure(
    registry: TestRegistry, stream: io.StringIO
) -> None:
    """Categorizes as skipped even when a failure was trapped before."""

    @registry.testcase
    def testcase_fail_then_skip(t: TestContext) -> None:
        t.check(False)
        t.skip()

    results = make_runner(registry, stream).run(registry.names)

    assert results.skipped == ["testcase_fail_then_skip"]
    assert results.failed == []


def test_hooks_wrap_every_test(registry: TestRegistry, stream: io.StringIO) -> None:
    """Calls setup before and teardown after each test with its context."""
    calls: list[tuple[str, str]] = []

    @registry.setup
    def setup(t: TestContext) -> None:
        calls.append(("setup", t.name))

    @registry.teardown
    def teardown(t: TestContext) -> None:
        calls.append(("teardown", t.name))

    @registry.testcase
    def testcase_one(t: TestContext) -> None:
        calls.append(("body", t.name))

    @registry.testcase
    def testcase_two(t: TestContext) -> None:
        calls.append(("body", t.name))
        t.skip()

    make_runner(registry, stream).run(registry.names)

    assert calls == [
        ("setup", "testcase_one"),
        ("body", "testcase_one"),
        ("teardown", "testcase_one"),
        ("setup", "testcase_two"),
        ("body", "testcase_two"),
        ("teardown", "testcase_two"),
    ]


def test_skip_in_setup_skips_body(registry: TestRegistry, stream: io.StringIO) -> None:
    """Does not run the body when setup skips, but still tears down."""
    calls: list[str] = []

    @registry.setup
    def setup(t: TestContext) -> None:
        t.skip("no environment")

    @registry.teardown
    def teardown(t: TestContext) -> None:
        calls.append("teardown")

    @registry.testcase
    def testcase_body(t: TestContext) -> None:
        calls.append("body")

    results = make_runner(registry, stream).run(registry.names)

    assert calls == ["teardown"]
    assert results.skipped == ["testcase_body"]


def test_failing_teardown_fails_test(
    registry: TestRegistry, stream: io.StringIO
) -> None:
    """Traps failures raised by the teardown hook."""

    @registry.teardown
    def teardown(t: TestContext) -> None:
        raise RuntimeError("cleanup failed")

    @registry.testcase
    def testcase_body(t: TestContext) -> None:
        pass

    results = make_runner(registry, stream).run(registry.names)

    assert results.failed == ["testcase_body"]


def test_each_test_gets_fresh_context(
    registry: TestRegistry, stream: io.StringIO
) -> None:
    """Does not leak captures or failures between tests."""
    seen: list[tuple[int, str, bool]] = []

    @registry.testcase
    def testcase_first(t: TestContext) -> None:
        t.run("sh", "-c", "echo leftover; exit 3")
        t.check(False)

    @registry.testcase
    def testcase_second(t: TestContext) -> None:
        seen.append((t.status, t.output, t.failed))

    results = make_runner(registry, stream).run(registry.names)

    assert seen == [(0, "", False)]
    assert results.failed == ["testcase_first"]
    assert results.passed == ["testcase_second"]


def test_runs_in_given_order_and_resets_results(
    registry: TestRegistry, stream: io.StringIO
) -> None:
    """Follows the run list and starts every run from empty results."""

    @registry.testcase
    def testcase_a(t: TestContext) -> None:
        pass

    @registry.testcase
    def testcase_b(t: TestContext) -> None:
        pass

    runner = make_runner(registry, stream)
    runner.run(["testcase_b", "testcase_a", "testcase_b"])
    results = runner.run(["testcase_a"])

    assert results.executed == ["testcase_a"]


def test_categories_are_exclusive_and_exhaustive(
    registry: TestRegistry, stream: io.StringIO
) -> None:
    """Places every executed test in exactly one category."""

    @registry.testcase
    def testcase_pass(t: TestContext) -> None:
        pass

    @registry.testcase
    def testcase_fail(t: TestContext) -> None:
        t.check(False)

    @registry.testcase
    def testcase_skip(t: TestContext) -> None:
        t.skip()

    results = make_runner(registry, stream).run(registry.names)

    for name in results.executed:
        groups = [results.passed, results.failed, results.skipped]
        assert sum(name in group for group in groups) == 1
    assert len(results.executed) == 3
