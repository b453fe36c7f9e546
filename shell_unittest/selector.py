"""Resolution of user-supplied tokens into the list of tests to run."""

import logging
import re
import sys
from collections.abc import Sequence

from shell_unittest.diagnostics import error_message
from shell_unittest.errors import SelectionError
from shell_unittest.registry import TEST_PREFIX, TestRegistry

log = logging.getLogger(__name__)


def select_tests(
    registry: TestRegistry,
    tokens: Sequence[str] = (),
    *,
    script: str | None = None,
) -> Sequence[str]:
    """Determine the tests to run from selector tokens.

    Each token is tried, in order, as a registry index, an exact function
    name, an exact description and finally a regular expression matched
    against names, then descriptions. Pattern matches are sorted by name.

    Args:
        registry: Registered tests.
        tokens: Selector tokens. Empty selects every test in registry order.
        script: Program name used in error messages (defaults to argv[0]).

    Returns:
        Test names in run order, one block per token.

    Raises:
        SelectionError: If an index is out of range or a token matches nothing.

    """
    if not tokens:
        return list(registry.names)

    script = script or sys.argv[0]
    selected: list[str] = []
    for token in tokens:
        selected.extend(resolve_token(registry, token, script=script))

    log.debug("Selected %d test(s): %s", len(selected), ", ".join(selected))
    return selected


def resolve_token(registry: TestRegistry, token: str, *, script: str) -> Sequence[str]:
    """Resolve a single selector token into test names."""
    names = registry.names

    if token.isascii() and token.isdigit():
        index = int(token)
        if index >= len(names):
            raise SelectionError(
                error_message(
                    f"Index {index} is out of range. "
                    f"Provide between 0 to {len(names) - 1}."
                )
            )
        return [names[index]]

    if token in registry:
        return [token]

    index = registry.index_of_description(token)
    if index is not None:
        return [names[index]]

    matches = match_pattern(token, names)
    if not matches:
        by_description = match_pattern(token, registry.descriptions)
        matches = [
            entry.name for entry in registry if entry.description in by_description
        ]

    if not matches:
        if token.startswith(TEST_PREFIX):
            message = f"Function {token} is not defined in {script}"
        else:
            message = f"No tests found with description: '{token}'"
        raise SelectionError(error_message(message))

    return sorted(set(matches))


def match_pattern(pattern: str, candidates: Sequence[str]) -> Sequence[str]:
    """Return candidates fully matching a regular expression.

    An invalid expression matches nothing.
    """
    try:
        regex = re.compile(pattern)
    except re.error:
        log.debug("Ignoring invalid pattern %r", pattern)
        return []
    return [candidate for candidate in candidates if regex.fullmatch(candidate)]
