"""Exclusion rules applied to the local file list before comparison."""

import re
from collections.abc import Iterable
from typing import Optional, Union

DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    r"^\.git",  # version control (.git/, .gitignore, .github/)
    r"^\.obsidian",  # editor configuration
    r"^node_modules",  # dependency cache
)


class ExclusionFilter:
    """Predicate over normalized relative paths.

    A path is excluded when any pattern matches at its start
    (``re.match``). Patterns are tested against the full relative path,
    so ``^\\.git`` excludes ``.git/config`` and ``.github/workflows/x.yml``
    alike.

    Examples:
        >>> exclude = ExclusionFilter()
        >>> exclude(".obsidian/app.json")
        True
        >>> exclude("notes/index.md")
        False
    """

    def __init__(
        self, patterns: Optional[Iterable[Union[str, "re.Pattern[str]"]]] = None
    ):
        """Initialize exclusion filter.

        Args:
            patterns: Regular expressions to exclude
                (default: DEFAULT_EXCLUDE_PATTERNS)
        """
        if patterns is None:
            patterns = DEFAULT_EXCLUDE_PATTERNS
        self.patterns: list[re.Pattern[str]] = [re.compile(p) for p in patterns]

    def is_excluded(self, relative_path: str) -> bool:
        """Check if a relative path should be left out of the manifest."""
        return any(pattern.match(relative_path) for pattern in self.patterns)

    __call__ = is_excluded

    def __repr__(self) -> str:
        return f"ExclusionFilter({[p.pattern for p in self.patterns]!r})"
