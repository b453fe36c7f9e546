"""Unit testing engine for shell commands and the scripts that drive them."""

from shell_unittest.capture import capture
from shell_unittest.cli import main
from shell_unittest.context import TestContext
from shell_unittest.diagnostics import colorize, error_message
from shell_unittest.errors import FatalError, SkipTest
from shell_unittest.helpers import endswith, equals, pluralize
from shell_unittest.models.result import CaptureResult, ResultSets
from shell_unittest.registry import (
    TestRegistry,
    default_registry,
    setup,
    teardown,
    testcase,
)

__all__ = [
    "CaptureResult",
    "FatalError",
    "ResultSets",
    "SkipTest",
    "TestContext",
    "TestRegistry",
    "capture",
    "colorize",
    "default_registry",
    "endswith",
    "equals",
    "error_message",
    "main",
    "pluralize",
    "setup",
    "teardown",
    "testcase",
]
