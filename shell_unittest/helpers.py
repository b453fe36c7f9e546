"""String helpers available to test bodies."""


def endswith(word: str, suffix: str) -> bool:
    """Check whether ``word`` ends with ``suffix``."""
    return word.endswith(suffix)


def equals(left: str, right: str) -> bool:
    """Check two strings for equality."""
    return left == right


def pluralize(word: str, count: int | None = None) -> str:
    """Return the noun form matching ``count``.

    The singular is kept only for a count of exactly one; a missing count is
    treated as plural. Nouns ending in ``s`` take ``-es``.

        >>> pluralize("test", 1), pluralize("test", 2), pluralize("bus")
        ('test', 'tests', 'buses')

    """
    if count == 1:
        return word
    if word.endswith("s"):
        return f"{word}es"
    return f"{word}s"
