"""Exceptions raised by the test engine."""


class FatalError(Exception):
    """Raised for configuration or registry errors that abort the whole run."""


class UnsupportedOptionError(FatalError):
    """Raised when an unknown command-line flag is supplied."""


class SelectionError(FatalError):
    """Raised when a selector token cannot be resolved to any test."""


class DuplicateTestError(FatalError):
    """Raised when duplicate checking finds a test defined more than once."""


class RegistrationError(FatalError):
    """Raised when a function cannot be registered as a test."""


class SkipTest(Exception):  # noqa: N818
    """Signal raised by ``TestContext.skip`` to stop the rest of a test body."""

    __test__ = False

    def __init__(self, note: str = "") -> None:
        super().__init__(note)
        self.note = note
