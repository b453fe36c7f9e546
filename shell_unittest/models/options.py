"""Run configuration parsed from the command line."""

from pydantic import Field

from shell_unittest.models.base import Model


class RunOptions(Model):
    """Options controlling a single engine run."""

    script: str = Field(..., description="Program name used in diagnostics")
    help: bool = Field(default=False, description="Print usage and exit")
    list_tests: bool = Field(default=False, description="List tests and exit")
    force_run: bool = Field(
        default=False, description="Run tests even when they request a skip"
    )
    verbose: bool = Field(default=False, description="Enable debug logging")
    check_duplicates: bool = Field(
        default=True, description="Abort when a test name is defined twice"
    )
    color: bool = Field(default=False, description="Colorize failure output")
    selectors: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Indices, names, descriptions or patterns of tests to run",
    )
