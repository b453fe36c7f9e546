"""Command-line entry points: flag parsing and whole-run orchestration."""

import argparse
import importlib.util
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from types import ModuleType
from typing import Any, NoReturn, TextIO

from shell_unittest.diagnostics import script_location
from shell_unittest.errors import FatalError, UnsupportedOptionError
from shell_unittest.models.options import RunOptions
from shell_unittest.registry import TestRegistry, default_registry
from shell_unittest.reporter import Reporter, exit_code
from shell_unittest.runner import TestRunner
from shell_unittest.selector import select_tests

log = logging.getLogger(__name__)

SCRIPT_USAGE = "usage: shell-unittest SCRIPT [-h] [-l] [-f] [-v] [TEST ...]"


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser raising fatal errors instead of exiting."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.known_flags: set[str] = set()
        super().__init__(*args, **kwargs)

    def add_argument(self, *args: Any, **kwargs: Any) -> argparse.Action:
        """Add an argument, remembering its option strings."""
        action = super().add_argument(*args, **kwargs)
        self.known_flags.update(action.option_strings)
        return action

    def error(self, message: str) -> NoReturn:
        """Raise an unsupported option error for any parsing problem."""
        raise UnsupportedOptionError(f"{self.prog}: {message}")


def build_parser(script: str) -> ArgumentParser:
    """Build the parser for the flags understood by every test script."""
    parser = ArgumentParser(
        prog=script,
        description="Run the unit tests defined in this script.",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-h", "--help", action="store_true", help="show this help message and exit"
    )
    parser.add_argument(
        "-l",
        "--list-tests",
        action="store_true",
        help="list available tests with their index and description",
    )
    parser.add_argument(
        "-f",
        "--force-run",
        action="store_true",
        help="run tests even if they ask to be skipped",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="log debug messages to stderr"
    )
    parser.add_argument(
        "selectors",
        nargs="*",
        metavar="TEST",
        help="index, function name, description or regular expression "
        "of tests to run (default: all)",
    )
    return parser


def unsupported_flag(argv: Sequence[str], known_flags: set[str]) -> str | None:
    """Return the first argument that looks like a flag but is not one."""
    for arg in argv:
        if arg == "--":
            break
        if arg.startswith("-") and arg not in known_flags:
            if arg != "-" and not arg[1:].isdigit():
                return arg
    return None


def parse_options(
    argv: Sequence[str],
    *,
    script: str,
    check_duplicates: bool = True,
    color: bool = False,
) -> RunOptions:
    """Parse command-line arguments into run options.

    Raises:
        UnsupportedOptionError: If an unknown flag is supplied.

    """
    parser = build_parser(script)
    try:
        args, unknown = parser.parse_known_intermixed_args(list(argv))
    except UnsupportedOptionError:
        flag = unsupported_flag(argv, parser.known_flags)
        if flag is None:
            raise
        raise UnsupportedOptionError(
            f"{script}: unsupported option: {flag}"
        ) from None

    selectors = list(args.selectors)
    for arg in unknown:
        if arg.startswith("-"):
            raise UnsupportedOptionError(f"{script}: unsupported option: {arg}")
        selectors.append(arg)

    return RunOptions(
        script=script,
        help=args.help,
        list_tests=args.list_tests,
        force_run=args.force_run,
        verbose=args.verbose,
        check_duplicates=check_duplicates,
        color=color,
        selectors=tuple(selectors),
    )


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr, leaving stdout to the report."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def run(options: RunOptions, registry: TestRegistry, stream: TextIO) -> int:
    """Run, list or describe the tests and return the exit code."""
    reporter = Reporter(stream=stream, color=options.color)

    if options.help:
        print(build_parser(options.script).format_help(), end="", file=stream)
        return 0

    if options.check_duplicates:
        registry.check_duplicates()

    if options.list_tests:
        reporter.print_test_list(registry)
        return 0

    names = select_tests(registry, options.selectors, script=options.script)
    log.info("Running %d of %d test(s)", len(names), len(registry))

    runner = TestRunner(registry=registry, options=options, reporter=reporter)
    results = runner.run(names)
    reporter.print_summary(results)

    return exit_code(results)


def main(
    argv: Sequence[str] | None = None,
    *,
    registry: TestRegistry | None = None,
    script: str | None = None,
    check_duplicates: bool = True,
    stream: TextIO | None = None,
) -> int:
    """Run the tests of the calling script and return the exit code.

    Meant to end a test script::

        if __name__ == "__main__":
            raise SystemExit(main())

    Args:
        argv: Arguments without the program name (default: ``sys.argv[1:]``).
        registry: Tests to run (default: the module-level registry).
        script: Program name used in messages (default: ``sys.argv[0]``).
        check_duplicates: Abort when a test name is defined more than once.
        stream: Where the report goes (default: stdout).

    Returns:
        0 when every selected test passed or nothing was run, 1 on a failed
        test or a fatal error.

    """
    registry = default_registry if registry is None else registry
    stream = sys.stdout if stream is None else stream
    script = sys.argv[0] if script is None else script
    argv = sys.argv[1:] if argv is None else argv

    try:
        options = parse_options(
            argv,
            script=script,
            check_duplicates=check_duplicates,
            color=stream.isatty(),
        )
        configure_logging(options.verbose)
        return run(options, registry, stream)
    except FatalError as exc:
        log.debug("Aborting run: %s", exc)
        print(exc, file=sys.stderr)
        return 1


def load_script(path: Path) -> ModuleType:
    """Import a test script by path so its tests register themselves.

    Raises:
        FatalError: If the file cannot be imported as a module.

    """
    module_name = f"_shell_unittest_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise FatalError(f"{path}: cannot be loaded as a Python script")
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


def run_script(argv: Sequence[str] | None = None) -> int:
    """Load the script named by the first argument and run its tests."""
    argv = sys.argv[1:] if argv is None else list(argv)

    if not argv or argv[0] in {"-h", "--help"}:
        print(SCRIPT_USAGE, file=sys.stdout if argv else sys.stderr)
        return 0 if argv else 1

    path = Path(argv[0])
    if not path.is_file():
        print(f"{path}: no such file", file=sys.stderr)
        return 1

    with script_location(path):
        try:
            load_script(path)
        except FatalError as exc:
            print(exc, file=sys.stderr)
            return 1

        return main(argv[1:], registry=default_registry, script=str(path))


def script_main() -> None:
    """CLI entry point."""
    sys.exit(run_script())


if __name__ == "__main__":  # pragma: no cover
    script_main()
