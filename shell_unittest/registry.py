"""Registration of test functions and the global setup/teardown hooks."""

import linecache
import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, TypeAlias, overload

from shell_unittest.diagnostics import error_message
from shell_unittest.errors import DuplicateTestError, RegistrationError
from shell_unittest.models.registry import DefinitionSite, TestEntry, TestFunc

if TYPE_CHECKING:
    from shell_unittest.context import TestContext

log = logging.getLogger(__name__)

TEST_PREFIX = "testcase_"

# Decorators can sit between ``co_firstlineno`` and the ``def`` line.
MAX_DECORATOR_LINES = 50

HookFunc: TypeAlias = Callable[["TestContext"], Any]


def definition_site(func: Callable[..., Any]) -> DefinitionSite:
    """Locate the ``def`` line of a function, skipping its decorators."""
    code = getattr(func, "__code__", None)
    if code is None:
        return DefinitionSite(path="<unknown>", lineno=0, text="")

    path = code.co_filename
    first = code.co_firstlineno
    for lineno in range(first, first + MAX_DECORATOR_LINES):
        text = linecache.getline(path, lineno)
        if not text:
            break
        if text.lstrip().startswith(("def ", "async def ")):
            return DefinitionSite(path=path, lineno=lineno, text=text.rstrip("\n"))

    text = linecache.getline(path, first).rstrip("\n")
    return DefinitionSite(path=path, lineno=first, text=text)


def join_description(name: str, parts: Sequence[Any]) -> str:
    """Join description parts, falling back to the function name when empty."""
    description = " ".join(str(part) for part in parts)
    if not description.strip():
        return name
    return description


@dataclass(kw_only=True)
class TestRegistry:
    """Ordered registry of test functions.

    Tests are kept in registration order. Redefining a name keeps its
    original position but binds the new function, mirroring how the module
    namespace itself rebinds the name; every definition site is remembered
    so duplicates can be reported.
    """

    __test__ = False

    entries_by_name: dict[str, TestEntry] = field(default_factory=dict)
    setup_hook: HookFunc | None = None
    teardown_hook: HookFunc | None = None

    def __len__(self) -> int:
        return len(self.entries_by_name)

    def __iter__(self) -> Iterator[TestEntry]:
        return iter(self.entries_by_name.values())

    def __contains__(self, name: object) -> bool:
        return name in self.entries_by_name

    @property
    def entries(self) -> Sequence[TestEntry]:
        """Registered tests in discovery order."""
        return list(self.entries_by_name.values())

    @property
    def names(self) -> Sequence[str]:
        """Registered test names in discovery order."""
        return list(self.entries_by_name)

    @property
    def descriptions(self) -> Sequence[str]:
        """Descriptions of registered tests in discovery order."""
        return [entry.description for entry in self.entries_by_name.values()]

    def get(self, name: str) -> TestEntry:
        """Return the entry registered under ``name``.

        Raises:
            KeyError: If no test has that name.

        """
        return self.entries_by_name[name]

    def index_of_description(self, description: str) -> int | None:
        """Return the index of the first test with exactly this description."""
        for index, entry in enumerate(self.entries_by_name.values()):
            if entry.description == description:
                return index
        return None

    def register(self, func: TestFunc, *description: Any) -> TestEntry:
        """Register a test function.

        Args:
            func: Function taking a ``TestContext``. Its name must start with
                ``testcase_``.
            description: Text parts joined with spaces. Empty means the
                function name is used.

        Returns:
            The registry entry for the function's name.

        Raises:
            RegistrationError: If the function name does not follow the
                ``testcase_`` convention.

        """
        name = getattr(func, "__name__", "")
        if not name.startswith(TEST_PREFIX):
            raise RegistrationError(
                error_message(
                    f"Function {name or func!r} cannot be registered as a test, "
                    f"its name must start with '{TEST_PREFIX}'"
                )
            )

        text = join_description(name, description)
        site = definition_site(func)
        existing = self.entries_by_name.get(name)
        if existing is None:
            entry = TestEntry(
                name=name,
                description=text,
                func=func,
                index=len(self.entries_by_name),
                sites=(site,),
            )
            log.debug("Registered %s: %s", name, text)
        else:
            entry = replace(
                existing,
                description=text,
                func=func,
                sites=(*existing.sites, site),
            )
            log.info("%s redefined at %s:%d", name, site.path, site.lineno)

        self.entries_by_name[name] = entry
        return entry

    @overload
    def testcase(self, func: TestFunc, /) -> TestFunc: ...

    @overload
    def testcase(self, *description: str) -> Callable[[TestFunc], TestFunc]: ...

    def testcase(self, *description: Any) -> Any:
        """Decorator registering a test, with or without a description.

            @registry.testcase("copy_array", "should copy every element")
            def testcase_copy_array(t): ...

            @registry.testcase
            def testcase_no_description(t): ...

        """
        if len(description) == 1 and callable(description[0]):
            self.register(description[0])
            return description[0]

        def decorator(func: TestFunc) -> TestFunc:
            self.register(func, *description)
            return func

        return decorator

    def setup(self, func: HookFunc) -> HookFunc:
        """Decorator registering the hook run before every test."""
        self.setup_hook = func
        return func

    def teardown(self, func: HookFunc) -> HookFunc:
        """Decorator registering the hook run after every test."""
        self.teardown_hook = func
        return func

    def find_duplicates(self) -> Sequence[TestEntry]:
        """Return entries whose name was defined more than once."""
        return [
            entry for entry in self.entries_by_name.values() if entry.is_duplicate
        ]

    def check_duplicates(self) -> None:
        """Fail if any test name was defined more than once.

        Raises:
            DuplicateTestError: With one block per duplicated name listing
                every definition line.

        """
        duplicates = self.find_duplicates()
        if not duplicates:
            return

        blocks = []
        for entry in duplicates:
            lines = [
                f"{entry.name}() is defined {len(entry.sites)} times "
                f"in {entry.sites[0].path}:"
            ]
            lines.extend(f"  {site.lineno}:{site.text}" for site in entry.sites)
            blocks.append("\n".join(lines))

        log.debug("Found %d duplicated test(s)", len(duplicates))
        raise DuplicateTestError("\n".join(blocks))

    def clear(self) -> None:
        """Forget every test and hook."""
        self.entries_by_name.clear()
        self.setup_hook = None
        self.teardown_hook = None


default_registry = TestRegistry()

testcase = default_registry.testcase
setup = default_registry.setup
teardown = default_registry.teardown
