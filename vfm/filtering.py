"""Query compilation and filtered-selection helpers.

The same primitives back the main listing filter and both popups (marker list
and program list). Selection is always an index into the filtered index set
and is anchored to the previously selected item whenever it stays visible.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar

T = TypeVar("T")

NameMatcher = Callable[[str], bool]

_MARKER_NAME_PREFIXES = ("n:", "n/", "name:", "name/")
_MARKER_PATH_PREFIXES = ("p:", "p/", "path:", "path/")


def compile_name_query(query: str) -> NameMatcher | None:
    """Compile ``query`` into a case-insensitive matcher.

    Returns ``None`` (match everything) for a blank query. A query that is a
    valid regular expression searches anywhere in the name; otherwise it
    falls back to a literal substring test.
    """
    trimmed = query.strip()
    if not trimmed:
        return None
    try:
        pattern = re.compile(trimmed, re.IGNORECASE)
    except re.error:
        needle = trimmed.lower()
        return lambda name: needle in name.lower()
    return lambda name: pattern.search(name) is not None


def filter_indices(items: Sequence[T], text_of: Callable[[T], str], query: str) -> list[int]:
    matcher = compile_name_query(query)
    if matcher is None:
        return list(range(len(items)))
    return [index for index, item in enumerate(items) if matcher(text_of(item))]


def anchor_selection(
    items: Sequence[T],
    indices: Sequence[int],
    key_of: Callable[[T], Hashable],
    previous_key: Hashable | None,
) -> int:
    """Return the filtered position of ``previous_key``, else 0."""
    if previous_key is not None:
        for position, index in enumerate(indices):
            if key_of(items[index]) == previous_key:
                return position
    return 0


def clamp_selection(selected: int, count: int) -> int:
    if count <= 0:
        return 0
    return max(0, min(selected, count - 1))


@dataclass(frozen=True)
class MarkerQuery:
    """Parsed marker-list query, optionally scoped to names or paths."""

    text: str
    match_name: bool = True
    match_path: bool = True


def parse_marker_query(query: str) -> MarkerQuery:
    trimmed = query.strip()
    lowered = trimmed.lower()
    for prefix in _MARKER_NAME_PREFIXES:
        if lowered.startswith(prefix):
            return MarkerQuery(trimmed[len(prefix) :].strip(), match_path=False)
    for prefix in _MARKER_PATH_PREFIXES:
        if lowered.startswith(prefix):
            return MarkerQuery(trimmed[len(prefix) :].strip(), match_name=False)
    return MarkerQuery(trimmed)


def marker_matcher(query: str) -> Callable[[tuple[str, Path]], bool] | None:
    parsed = parse_marker_query(query)
    if not parsed.text:
        return None
    needle = parsed.text.lower()

    def matches(entry: tuple[str, Path]) -> bool:
        name, path = entry
        if parsed.match_name and needle in name.lower():
            return True
        return parsed.match_path and needle in str(path).lower()

    return matches


def substring_matcher(text_of: Callable[[T], Sequence[str]]) -> Callable[[str], Callable[[T], bool] | None]:
    """Build a matcher factory testing a needle against several fields."""

    def factory(query: str) -> Callable[[T], bool] | None:
        needle = query.strip().lower()
        if not needle:
            return None
        return lambda item: any(needle in field.lower() for field in text_of(item))

    return factory


class FilteredList(Generic[T]):
    """Entries plus a live query, a filtered index set and a selection."""

    def __init__(
        self,
        entries: Sequence[T],
        matcher_for: Callable[[str], Callable[[T], bool] | None],
        key_of: Callable[[T], Hashable],
    ) -> None:
        self.entries: list[T] = list(entries)
        self.filter = ""
        self.selected = 0
        self._matcher_for = matcher_for
        self._key_of = key_of
        self.filtered: list[int] = list(range(len(self.entries)))

    def _recompute(self, previous_key: Hashable | None) -> None:
        matcher = self._matcher_for(self.filter)
        if matcher is None:
            self.filtered = list(range(len(self.entries)))
        else:
            self.filtered = [i for i, entry in enumerate(self.entries) if matcher(entry)]
        self.selected = anchor_selection(self.entries, self.filtered, self._key_of, previous_key)

    def selected_entry(self) -> T | None:
        if not self.filtered:
            return None
        return self.entries[self.filtered[clamp_selection(self.selected, len(self.filtered))]]

    def selected_key(self) -> Hashable | None:
        entry = self.selected_entry()
        return None if entry is None else self._key_of(entry)

    def visible(self) -> list[T]:
        return [self.entries[i] for i in self.filtered]

    def move_selection(self, delta: int) -> None:
        self.selected = clamp_selection(self.selected + delta, len(self.filtered))

    def update_filter(self, query: str) -> None:
        previous = self.selected_key()
        self.filter = query
        self._recompute(previous)

    def clear_filter(self) -> None:
        self.update_filter("")

    def replace_entries(self, entries: Sequence[T], preferred: Hashable | None = None) -> None:
        """Swap in new entries, keeping the current filter text.

        Selection prefers ``preferred`` when given, else the previously
        selected key.
        """
        previous = preferred if preferred is not None else self.selected_key()
        self.entries = list(entries)
        self._recompute(previous)
