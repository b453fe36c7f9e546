"""Models for registered test functions."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from shell_unittest.context import TestContext

TestFunc: TypeAlias = Callable[["TestContext"], Any]


@dataclass(frozen=True, kw_only=True)
class DefinitionSite:
    """Source location where a test function was defined."""

    path: str
    lineno: int
    text: str


@dataclass(frozen=True, kw_only=True)
class TestEntry:
    """A registered test function.

    ``sites`` holds one entry per definition of ``name``; more than one means
    the function was defined twice and the later definition won.
    """

    __test__ = False

    name: str
    description: str
    func: TestFunc
    index: int
    sites: Sequence[DefinitionSite] = ()

    @property
    def is_duplicate(self) -> bool:
        """Whether the name was defined more than once."""
        return len(self.sites) > 1
