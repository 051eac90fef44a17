"""Filename patterns and artifact filtering options.

Pattern strings come from config and the CLI in three shapes:

- ``/regex/flags``: a regular expression, flags among ``i``, ``m``, ``s``, ``x``
- a glob containing ``*`` or ``?``: anchored, other characters literal
- anything else: exact filename match
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

__all__ = [
    "FilterOptions",
    "PatternError",
    "compile_pattern",
    "regex_from_slashes",
    "apply_filters",
    "any_match",
]

_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


class PatternError(ValueError):
    """Raised when a pattern string cannot be compiled."""


class _Named(Protocol):
    @property
    def filename(self) -> str: ...


def regex_from_slashes(text: str) -> re.Pattern[str]:
    """Compile a ``/regex/flags`` string.

    Raises:
        PatternError: If the slashes are missing or a flag is unknown.
    """
    first = text.find("/")
    last = text.rfind("/")
    if first != 0 or last < 2:
        raise PatternError(f"invalid regex string: {text}")

    flags = 0
    for ch in text[last + 1 :]:
        flag = _FLAG_MAP.get(ch)
        if flag is None:
            raise PatternError(f"unsupported regex flag '{ch}' in: {text}")
        flags |= flag

    try:
        return re.compile(text[1:last], flags)
    except re.error as e:
        raise PatternError(f"invalid regex {text}: {e}") from e


def _glob_to_regex(pattern: str) -> str:
    parts: list[str] = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a config pattern string (regex, glob or exact name)."""
    if pattern.startswith("/") and pattern.rfind("/") > 0:
        return regex_from_slashes(pattern)
    if "*" in pattern or "?" in pattern:
        return re.compile(f"^{_glob_to_regex(pattern)}$")
    return re.compile(f"^{re.escape(pattern)}$")


@dataclass(frozen=True, slots=True)
class FilterOptions:
    """Include/exclude matchers applied to artifact filenames."""

    include: re.Pattern[str] | None = None
    exclude: re.Pattern[str] | None = None

    @classmethod
    def from_strings(cls, include: str | None, exclude: str | None) -> FilterOptions:
        return cls(
            include=compile_pattern(include) if include else None,
            exclude=compile_pattern(exclude) if exclude else None,
        )

    def over(self, fallback: FilterOptions) -> FilterOptions:
        """Merge with ``fallback``; fields set here win."""
        return FilterOptions(
            include=self.include if self.include is not None else fallback.include,
            exclude=self.exclude if self.exclude is not None else fallback.exclude,
        )

    @property
    def is_empty(self) -> bool:
        return self.include is None and self.exclude is None


def apply_filters[A: _Named](items: Iterable[A], options: FilterOptions) -> list[A]:
    """Keep include matches, then drop exclude matches. Order is fixed."""
    out = list(items)
    if options.include is not None:
        include = options.include
        out = [a for a in out if include.search(a.filename)]
    if options.exclude is not None:
        exclude = options.exclude
        out = [a for a in out if not exclude.search(a.filename)]
    return out


def any_match(patterns: Sequence[re.Pattern[str]], name: str) -> bool:
    return any(p.search(name) for p in patterns)
